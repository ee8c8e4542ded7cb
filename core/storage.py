"""
Device-local storage for the offline queue.

The queue keeps two named collections of plain records, ``scans`` and
``cart_items``. Storage is a port: OfflineQueue only sees ``load`` and
``save`` and holds ``lock`` across each read-modify-write round trip.

Thread Safety:
    - One ``threading.Lock`` per storage instance
    - The lock serializes writers inside one process only; two processes
      sharing a queue file can still interleave (single writer per device
      is a precondition)

Persistence:
    JsonFileQueueStorage writes the whole document to a temp file in the same
    directory and swaps it in with os.replace, so a crash mid-write leaves
    the previous version intact.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Protocol, Union

from logging_config import get_logger


logger = get_logger(__name__)

SCANS = "scans"
CART_ITEMS = "cart_items"
COLLECTIONS = (SCANS, CART_ITEMS)

Record = Dict[str, Any]


class QueueStorage(Protocol):
    """Storage port used by OfflineQueue."""

    lock: threading.Lock

    def load(self, collection: str) -> List[Record]: ...

    def save(self, collection: str, records: List[Record]) -> None: ...


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown queue collection: {collection}")


class InMemoryQueueStorage:
    """Process-local storage; contents are lost when the process exits."""

    def __init__(self):
        self.lock = threading.Lock()
        self._data: Dict[str, List[Record]] = {name: [] for name in COLLECTIONS}

    def load(self, collection: str) -> List[Record]:
        _check_collection(collection)
        return deepcopy(self._data[collection])

    def save(self, collection: str, records: List[Record]) -> None:
        _check_collection(collection)
        self._data[collection] = deepcopy(records)


class JsonFileQueueStorage:
    """
    Durable storage in a single JSON file.

    Layout::

        {"scans": [...], "cart_items": [...]}

    A missing file is an empty queue. An unreadable or corrupt file is
    logged and also read as empty; the next save first moves it aside to
    ``<name>.corrupt`` so its contents can still be recovered by hand.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def corrupt_path(self) -> Path:
        return self.path.with_name(self.path.name + ".corrupt")

    def _read_document(self, quarantine: bool = False) -> Dict[str, List[Record]]:
        if not self.path.exists():
            return {name: [] for name in COLLECTIONS}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except OSError as e:
            logger.error(f"Failed to read offline queue {self.path}: {e}")
            return {name: [] for name in COLLECTIONS}
        except json.JSONDecodeError as e:
            logger.error(f"Offline queue {self.path} is corrupt: {e}")
            if quarantine:
                self._quarantine()
            return {name: [] for name in COLLECTIONS}

        if not isinstance(document, dict):
            logger.error(f"Offline queue {self.path} is not a JSON object, ignoring it")
            if quarantine:
                self._quarantine()
            return {name: [] for name in COLLECTIONS}

        return {
            name: [r for r in document.get(name, []) if isinstance(r, dict)]
            for name in COLLECTIONS
        }

    def load(self, collection: str) -> List[Record]:
        _check_collection(collection)
        return self._read_document()[collection]

    def save(self, collection: str, records: List[Record]) -> None:
        _check_collection(collection)
        document = self._read_document(quarantine=True)
        document[collection] = records

        fd, tmp_path = tempfile.mkstemp(
            prefix=".offline_queue.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.debug(f"Saved {len(records)} {collection} records to {self.path}")

    def _quarantine(self) -> None:
        os.replace(self.path, self.corrupt_path)
        logger.warning(f"Moved unreadable offline queue to {self.corrupt_path}")
