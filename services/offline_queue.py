"""
Offline operation queue.

Two independent append-mostly logs kept on the device:

    scans       - barcodes scanned while offline
    cart_items  - add-to-cart operations made while offline

Every mutation is one read -> modify -> write round trip of a whole log,
performed while holding the storage lock. That round trip is the unit of
atomicity; there is no per-record locking.

Status Rules:
    - New records start PENDING
    - PENDING may move to SYNCED or FAILED, nothing else moves
    - Terminal records are never purged automatically; prune() removes
      those older than the retention window

Usage:
    queue = OfflineQueue(JsonFileQueueStorage(path))

    scan_id = queue.enqueue_scan("4901234567894")
    item_id = queue.enqueue_cart_item("prod-1", 2)

    for record in queue.pending(CART_ITEMS):
        ...
        queue.update_status(CART_ITEMS, record.id, RecordStatus.SYNCED)
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from core.exceptions import InvalidStatusTransitionError, RequestValidationError
from core.runtime import Clock, IdGenerator, utc_now, uuid_id_generator
from core.storage import CART_ITEMS, COLLECTIONS, SCANS, QueueStorage
from models.queue_record import CartItemRecord, RecordStatus, ScanRecord
from logging_config import get_logger


logger = get_logger(__name__)

QueueRecord = Union[ScanRecord, CartItemRecord]

_RECORD_TYPES = {
    SCANS: ScanRecord,
    CART_ITEMS: CartItemRecord,
}


class OfflineQueue:
    """
    Durable local log of pending scan and cart-add operations.

    Attributes:
        retention_seconds: Default age after which terminal records are pruned
    """

    def __init__(
        self,
        storage: QueueStorage,
        id_generator: IdGenerator = uuid_id_generator,
        clock: Clock = utc_now,
        retention_seconds: int = 7 * 24 * 60 * 60,
    ):
        self._storage = storage
        self._new_id = id_generator
        self._clock = clock
        self.retention_seconds = retention_seconds

    # =========================================================================
    # ENQUEUE
    # =========================================================================

    def enqueue_scan(self, barcode: str) -> str:
        """Append a pending scan. Returns the new record id."""
        record = ScanRecord(
            id=self._new_id(),
            barcode=barcode,
            captured_at=self._clock(),
        )
        self._append(SCANS, record)
        logger.info(f"Queued scan {record.id[:8]} for barcode {barcode}")
        return record.id

    def enqueue_cart_item(self, product_id: str, quantity: int) -> str:
        """
        Append a pending add-to-cart. Returns the new record id.

        Raises:
            RequestValidationError: quantity < 1 or missing product id
        """
        if not product_id:
            raise RequestValidationError("productId is required", field="productId")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise RequestValidationError("quantity must be an integer >= 1", field="quantity")

        record = CartItemRecord(
            id=self._new_id(),
            product_id=product_id,
            quantity=quantity,
            captured_at=self._clock(),
        )
        self._append(CART_ITEMS, record)
        logger.info(f"Queued cart item {record.id[:8]}: {product_id} x{quantity}")
        return record.id

    def retry(self, log: str, record_id: str) -> Optional[str]:
        """
        Re-enqueue a FAILED record as a brand new PENDING record.

        The failed record is left as it is, so history stays monotonic.

        Returns:
            New record id, or None when ``record_id`` is absent or not FAILED
        """
        record = self.get(log, record_id)
        if record is None or record.status is not RecordStatus.FAILED:
            return None

        if isinstance(record, ScanRecord):
            new_id = self.enqueue_scan(record.barcode)
        else:
            new_id = self.enqueue_cart_item(record.product_id, record.quantity)

        logger.info(f"Retrying {log} record {record_id[:8]} as {new_id[:8]}")
        return new_id

    # =========================================================================
    # READ
    # =========================================================================

    def list(self, log: str) -> List[QueueRecord]:
        """All records of ``log`` in insertion order."""
        record_type = self._record_type(log)
        return [record_type.from_dict(raw) for raw in self._storage.load(log)]

    def list_scans(self) -> List[ScanRecord]:
        return self.list(SCANS)

    def list_cart_items(self) -> List[CartItemRecord]:
        return self.list(CART_ITEMS)

    def pending(self, log: str) -> List[QueueRecord]:
        """PENDING records of ``log`` in insertion order."""
        return [r for r in self.list(log) if r.status is RecordStatus.PENDING]

    def get(self, log: str, record_id: str) -> Optional[QueueRecord]:
        for record in self.list(log):
            if record.id == record_id:
                return record
        return None

    def counts(self) -> Dict[str, Dict[str, int]]:
        """Per-log record counts by status."""
        summary: Dict[str, Dict[str, int]] = {}
        for log in COLLECTIONS:
            by_status = {status.value: 0 for status in RecordStatus}
            for record in self.list(log):
                by_status[record.status.value] += 1
            summary[log] = by_status
        return summary

    # =========================================================================
    # MUTATE
    # =========================================================================

    def update_status(
        self,
        log: str,
        record_id: str,
        status: RecordStatus,
        failure_reason: str = "",
        **fields: Any,
    ) -> bool:
        """
        Move a record to ``status``.

        Extra keyword fields (``resolved_product`` for scans, ``remote_item``
        for cart items) are stored together with the status in the same
        round trip.

        Returns:
            True if the record was updated, False if the id is absent or the
            record already holds that terminal status

        Raises:
            InvalidStatusTransitionError: Record is already terminal with a
                different status
        """
        record_type = self._record_type(log)

        with self._storage.lock:
            raw_records = self._storage.load(log)
            for index, raw in enumerate(raw_records):
                if raw.get("id") != record_id:
                    continue

                record = record_type.from_dict(raw)
                if not record.status.can_transition_to(status):
                    raise InvalidStatusTransitionError(
                        record_id, record.status.value, status.value
                    )
                if record.status.is_terminal:
                    # Terminal records are frozen, including their payload fields
                    logger.debug(f"{log} record {record_id[:8]} already {status.value}, ignoring")
                    return False

                record.status = status
                record.failure_reason = failure_reason if status is RecordStatus.FAILED else ""
                for name, value in fields.items():
                    setattr(record, name, value)

                raw_records[index] = record.to_dict()
                self._storage.save(log, raw_records)
                logger.debug(f"{log} record {record_id[:8]} -> {status.value}")
                return True

        logger.debug(f"update_status: {log} record {record_id[:8]} not found, ignoring")
        return False

    def remove(self, log: str, record_id: str) -> bool:
        """Permanently delete a record. Returns False if it was absent."""
        self._record_type(log)

        with self._storage.lock:
            raw_records = self._storage.load(log)
            kept = [raw for raw in raw_records if raw.get("id") != record_id]
            if len(kept) == len(raw_records):
                return False
            self._storage.save(log, kept)

        logger.info(f"Removed {log} record {record_id[:8]}")
        return True

    def prune(self, older_than_seconds: Optional[int] = None) -> int:
        """
        Delete SYNCED/FAILED records captured before the retention cutoff.

        Args:
            older_than_seconds: Override for ``retention_seconds``

        Returns:
            Number of records removed across both logs
        """
        window = self.retention_seconds if older_than_seconds is None else older_than_seconds
        cutoff = self._clock() - timedelta(seconds=window)
        removed = 0

        for log in COLLECTIONS:
            record_type = self._record_type(log)
            with self._storage.lock:
                raw_records = self._storage.load(log)
                kept = []
                for raw in raw_records:
                    record = record_type.from_dict(raw)
                    if record.status.is_terminal and record.captured_at < cutoff:
                        continue
                    kept.append(raw)

                dropped = len(raw_records) - len(kept)
                if dropped:
                    self._storage.save(log, kept)
                    removed += dropped

        if removed:
            logger.info(f"Pruned {removed} terminal queue records older than {window}s")
        return removed

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _append(self, log: str, record: QueueRecord) -> None:
        with self._storage.lock:
            raw_records = self._storage.load(log)
            raw_records.append(record.to_dict())
            self._storage.save(log, raw_records)

    @staticmethod
    def _record_type(log: str) -> Callable[..., Any]:
        try:
            return _RECORD_TYPES[log]
        except KeyError:
            raise ValueError(f"Unknown queue log: {log}") from None
