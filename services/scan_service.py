"""
Device-side scan and add-to-cart flow.

Decides, per operation, whether to call the remote service now or append
to the offline queue:

    scan -> validate -> duplicate? -> online?  -> resolve remotely
                                     offline? -> enqueue_scan

Validation failures are raised before anything touches the queue or the
network. While online, remote errors propagate to the caller unchanged;
only offline operations are queued.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.exceptions import BarcodeValidationError, RequestValidationError
from core.runtime import ConnectivityProbe
from modules.barcode import BarcodeValidation, ScanDeduplicator, validate_barcode
from services.offline_queue import OfflineQueue
from logging_config import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class ScanOutcome:
    """What handle_scan() did with one read."""

    barcode: str
    validation: BarcodeValidation
    product: Optional[Dict[str, Any]] = None
    queued: bool = False
    queue_id: Optional[str] = None
    duplicate: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "barcode": self.barcode,
            "validation": self.validation.to_dict(),
            "product": self.product,
            "queued": self.queued,
            "queueId": self.queue_id,
            "duplicate": self.duplicate,
        }


@dataclass(frozen=True)
class AddToCartOutcome:
    queued: bool
    queue_id: Optional[str] = None
    cart_item: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "queued": self.queued,
            "queueId": self.queue_id,
            "cartItem": self.cart_item,
        }


class ScanService:
    def __init__(
        self,
        queue: OfflineQueue,
        remote,
        connectivity: ConnectivityProbe,
        deduplicator: Optional[ScanDeduplicator] = None,
    ):
        self._queue = queue
        self._remote = remote
        self._connectivity = connectivity
        self._deduplicator = deduplicator or ScanDeduplicator()

    def handle_scan(self, raw: str) -> ScanOutcome:
        """
        Process one decoded read.

        Raises:
            BarcodeValidationError: Unsupported format or bad EAN-13 check digit
            RemoteServiceError: Online resolution failed
        """
        validation = validate_barcode(raw)
        if not validation.is_valid:
            logger.info(f"Rejected scan {validation.barcode!r}: {validation.error}")
            raise BarcodeValidationError(
                validation.barcode, validation.symbology.value, validation.error or ""
            )

        code = validation.barcode
        if not self._deduplicator.accept(code):
            logger.debug(f"Ignoring repeated read of {code}")
            return ScanOutcome(barcode=code, validation=validation, duplicate=True)

        try:
            if not self._connectivity.is_online():
                queue_id = self._queue.enqueue_scan(code)
                return ScanOutcome(
                    barcode=code, validation=validation, queued=True, queue_id=queue_id
                )

            product = self._remote.resolve_barcode(code)
        except Exception:
            # A failed read stays rescannable within the window
            self._deduplicator.reset()
            raise

        return ScanOutcome(barcode=code, validation=validation, product=product)

    def add_to_cart(self, product_id: str, quantity: int) -> AddToCartOutcome:
        """
        Add to the remote cart now, or queue the add while offline.

        Raises:
            RequestValidationError: quantity < 1
            RemoteServiceError: Online add failed
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise RequestValidationError("quantity must be an integer >= 1", field="quantity")

        if not self._connectivity.is_online():
            queue_id = self._queue.enqueue_cart_item(product_id, quantity)
            return AddToCartOutcome(queued=True, queue_id=queue_id)

        cart_item = self._remote.add_cart_item(product_id, quantity)
        return AddToCartOutcome(queued=False, cart_item=cart_item)
