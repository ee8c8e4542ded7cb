"""
Offline queue record models.

A record is created when an operation cannot reach the remote service and
is mutated only by the SyncEngine moving its status forward.

Lifecycle:
    PENDING -> (SYNCED | FAILED)

Records are stored as plain dicts (see core.storage); these classes are the
typed view used by the services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional


class RecordStatus(Enum):
    """Sync status of a queued operation."""

    PENDING = "pending"
    """Waiting for the next drain."""

    SYNCED = "synced"
    """Remote service accepted the operation."""

    FAILED = "failed"
    """Remote call was rejected or never answered. Terminal."""

    @property
    def is_terminal(self) -> bool:
        return self is not RecordStatus.PENDING

    def can_transition_to(self, target: "RecordStatus") -> bool:
        """Only pending records move, and only forward."""
        if self is target:
            return True
        return self is RecordStatus.PENDING


def _parse_timestamp(value: Any) -> datetime:
    parsed = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # Millisecond epoch values from older queue files
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            parsed = None

    if parsed is None:
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_status(value: Any) -> RecordStatus:
    try:
        return RecordStatus(value)
    except ValueError:
        return RecordStatus.PENDING


@dataclass
class ScanRecord:
    """A barcode scanned while offline."""

    id: str
    """Queue-unique identifier."""

    barcode: str
    """Validated barcode digits."""

    captured_at: datetime
    """When the scan was queued."""

    status: RecordStatus = RecordStatus.PENDING

    resolved_product: Optional[Dict[str, Any]] = None
    """Product snapshot returned by the remote service once synced."""

    failure_reason: str = ""
    """Why the last sync attempt failed (empty unless FAILED)."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored record layout."""
        return {
            "id": self.id,
            "barcode": self.barcode,
            "capturedAt": self.captured_at.isoformat(),
            "status": self.status.value,
            "resolvedProduct": self.resolved_product,
            "failureReason": self.failure_reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanRecord":
        return cls(
            id=data.get("id", ""),
            barcode=data.get("barcode", ""),
            captured_at=_parse_timestamp(data.get("capturedAt", data.get("timestamp"))),
            status=_parse_status(data.get("status", "pending")),
            resolved_product=data.get("resolvedProduct", data.get("product")),
            failure_reason=data.get("failureReason", ""),
        )


@dataclass
class CartItemRecord:
    """An add-to-cart made while offline."""

    id: str
    """Queue-unique identifier."""

    product_id: str
    """Catalog product id."""

    quantity: int
    """Quantity to add (always >= 1)."""

    captured_at: datetime
    """When the item was queued."""

    status: RecordStatus = RecordStatus.PENDING

    failure_reason: str = ""

    remote_item: Dict[str, Any] = field(default_factory=dict)
    """cartItem returned by the remote service once synced."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "capturedAt": self.captured_at.isoformat(),
            "status": self.status.value,
            "failureReason": self.failure_reason,
            "remoteItem": self.remote_item,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItemRecord":
        return cls(
            id=data.get("id", ""),
            product_id=data.get("productId", ""),
            quantity=int(data.get("quantity", 1)),
            captured_at=_parse_timestamp(data.get("capturedAt", data.get("timestamp"))),
            status=_parse_status(data.get("status", "pending")),
            failure_reason=data.get("failureReason", ""),
            remote_item=dict(data.get("remoteItem") or {}),
        )
