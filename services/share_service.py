"""
Shareable cart links.

A share token gives read access to a cart without authentication until the
share expires. Expiry is purely a time comparison; there is no revocation.

Token:
    sha256("{cart_id}-{now_ms}-{random hex}") truncated to 16 hex chars.
    That is 64 bits of the digest. Enough for a low-value link that dies
    after days, but far below a full-strength secret; widening it changes
    every URL handed out, so the length is a setting of the issuer.

Live view:
    Resolving a token re-reads the CURRENT cart. Items the owner adds or
    removes after sharing show up for viewers too.

Usage:
    issuer = CartShareIssuer(InMemoryShareStore(), cart_service)

    share = issuer.create_share(cart.id, created_by="user-1")
    url = issuer.share_url(share.token)

    resolution = issuer.resolve_share(token)
    if resolution.status is ShareStatus.EXPIRED:
        ...
"""

from __future__ import annotations

import hashlib
import secrets
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Protocol

from core.exceptions import RequestValidationError
from core.runtime import Clock, to_millis, utc_now
from models.cart import CartSnapshot
from models.share import CartShare, ShareResolution, ShareStatus
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_EXPIRES_IN_MS = 7 * 24 * 60 * 60 * 1000
# Expired shares answer EXPIRED for this long before they are dropped
EXPIRED_RETENTION_MS = 7 * 24 * 60 * 60 * 1000
TOKEN_HEX_LENGTH = 16


class CartReader(Protocol):
    def snapshot_for_cart(self, cart_id: str) -> Optional[CartSnapshot]: ...


class ShareStore(Protocol):
    def save(self, share: CartShare) -> None: ...

    def get(self, token: str) -> Optional[CartShare]: ...

    def prune_expired(self, cutoff: datetime) -> int: ...


class InMemoryShareStore:
    """Share records keyed by token."""

    def __init__(self):
        self._shares: Dict[str, CartShare] = {}
        self._lock = threading.Lock()

    def save(self, share: CartShare) -> None:
        with self._lock:
            if share.token in self._shares:
                raise ValueError(f"Share token collision: {share.token}")
            self._shares[share.token] = share

    def get(self, token: str) -> Optional[CartShare]:
        with self._lock:
            return self._shares.get(token)

    def prune_expired(self, cutoff: datetime) -> int:
        """Drop shares that had expired by ``cutoff``. Returns how many went."""
        with self._lock:
            stale = [token for token, share in self._shares.items() if share.is_expired(cutoff)]
            for token in stale:
                del self._shares[token]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._shares)


class CartShareIssuer:
    """Creates and resolves time-limited share tokens."""

    def __init__(
        self,
        store: ShareStore,
        cart_reader: CartReader,
        clock: Clock = utc_now,
        entropy: Callable[[], str] = lambda: secrets.token_hex(16),
        public_url: str = "http://localhost:3000",
        default_expires_in_ms: int = DEFAULT_EXPIRES_IN_MS,
        expired_retention_ms: int = EXPIRED_RETENTION_MS,
    ):
        self._store = store
        self._cart_reader = cart_reader
        self._clock = clock
        self._entropy = entropy
        self._public_url = public_url.rstrip("/")
        self.default_expires_in_ms = default_expires_in_ms
        self.expired_retention_ms = expired_retention_ms

    def generate_token(self, cart_id: str) -> str:
        material = f"{cart_id}-{to_millis(self._clock())}-{self._entropy()}"
        return hashlib.sha256(material.encode("utf-8")).hexdigest()[:TOKEN_HEX_LENGTH]

    def create_share(
        self,
        cart_id: str,
        created_by: str,
        expires_in_ms: Optional[int] = None,
    ) -> CartShare:
        """
        Issue a share for ``cart_id`` valid for ``expires_in_ms``.

        Raises:
            RequestValidationError: Non-positive expiry
        """
        if expires_in_ms is None:
            expires_in_ms = self.default_expires_in_ms
        if isinstance(expires_in_ms, bool) or not isinstance(expires_in_ms, int) or expires_in_ms <= 0:
            raise RequestValidationError("expiresIn must be a positive number of milliseconds", field="expiresIn")

        now = self._clock()
        self.prune_expired(now)
        share = CartShare(
            token=self.generate_token(cart_id),
            cart_id=cart_id,
            expires_at=now + timedelta(milliseconds=expires_in_ms),
            created_by=created_by,
            created_at=now,
        )
        self._store.save(share)

        logger.info(
            f"Issued share {share.token[:4]}... for cart {cart_id[:8]}, "
            f"expires {share.expires_at.isoformat()}"
        )
        return share

    def resolve_share(self, token: str) -> ShareResolution:
        """
        Look up a token and return the live cart view.

        NOT_FOUND: unknown token, or the cart no longer exists
        EXPIRED:   now >= expires_at
        FOUND:     snapshot of the cart as it is right now
        """
        share = self._store.get(token)
        if share is None:
            logger.debug("Share lookup: unknown token")
            return ShareResolution(ShareStatus.NOT_FOUND)

        if share.is_expired(self._clock()):
            logger.info(f"Share {token[:4]}... expired at {share.expires_at.isoformat()}")
            return ShareResolution(ShareStatus.EXPIRED, share=share)

        snapshot = self._cart_reader.snapshot_for_cart(share.cart_id)
        if snapshot is None:
            logger.warning(f"Share {token[:4]}... points at missing cart {share.cart_id[:8]}")
            return ShareResolution(ShareStatus.NOT_FOUND, share=share)

        return ShareResolution(ShareStatus.FOUND, share=share, snapshot=snapshot)

    def prune_expired(self, now: Optional[datetime] = None) -> int:
        """Forget shares that expired more than ``expired_retention_ms`` ago."""
        if now is None:
            now = self._clock()
        cutoff = now - timedelta(milliseconds=self.expired_retention_ms)
        removed = self._store.prune_expired(cutoff)
        if removed:
            logger.info(f"Pruned {removed} expired share(s)")
        return removed

    def share_url(self, token: str) -> str:
        return f"{self._public_url}/cart/shared/{token}"
