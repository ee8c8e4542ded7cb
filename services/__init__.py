"""
Services layer for ScanCart.

This module contains the business logic services:
- OfflineQueue: Durable pending-operation logs on the device
- SyncEngine: Drains the queue through the remote client on reconnect
- ScanService: Per-scan decision between remote resolution and the queue
- CartService / Catalog: In-memory carts over catalog reference data
- CartShareIssuer: Time-limited share tokens for carts

Thread Model:
    Flask request threads share every service instance; each service
    guards its own state with a threading.Lock. Only one drain runs at a
    time, and a second request to drain returns a skipped report.
"""

from .offline_queue import OfflineQueue
from .sync_engine import SyncEngine
from .scan_service import ScanService, ScanOutcome, AddToCartOutcome
from .cart_service import Catalog, CartService
from .share_service import CartShareIssuer, InMemoryShareStore

__all__ = [
    "OfflineQueue",
    "SyncEngine",
    "ScanService",
    "ScanOutcome",
    "AddToCartOutcome",
    "Catalog",
    "CartService",
    "CartShareIssuer",
    "InMemoryShareStore",
]
