"""
Cart share models.

A CartShare grants read access to a cart until ``expires_at``. There is no
revocation: a share stops resolving only when its time runs out.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional

from .cart import CartSnapshot


@dataclass(frozen=True)
class CartShare:
    """A time-limited share token for one cart."""

    token: str
    """16 hex characters (64 bits) of a SHA-256 digest."""

    cart_id: str
    expires_at: datetime
    created_by: str
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Expired at the exact expiry instant and after."""
        return now >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "cartId": self.cart_id,
            "expiresAt": self.expires_at.isoformat(),
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
        }


class ShareStatus(Enum):
    """Outcome of resolving a share token."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ShareResolution:
    """
    Result of CartShareIssuer.resolve_share().

    ``snapshot`` is set only for FOUND; ``share`` is set for FOUND and
    EXPIRED so callers can show when the link lapsed.
    """

    status: ShareStatus
    share: Optional[CartShare] = None
    snapshot: Optional[CartSnapshot] = None

    @property
    def found(self) -> bool:
        return self.status is ShareStatus.FOUND
