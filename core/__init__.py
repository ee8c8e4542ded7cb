"""
Core module for ScanCart.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- storage: Device-local queue storage port and implementations
- runtime: Injected clock, id generator and connectivity probes
- remote_client: httpx client for the remote catalog/cart service
"""

from .exceptions import (
    ScanCartError,
    RequestValidationError,
    BarcodeValidationError,
    UnsupportedDestinationError,
    InvalidStatusTransitionError,
    RemoteServiceError,
    ServiceUnavailableError,
    NotFoundError,
    ProductNotFoundError,
    CartItemNotFoundError,
)
from .storage import QueueStorage, InMemoryQueueStorage, JsonFileQueueStorage
from .runtime import (
    ConnectivityProbe,
    StaticConnectivityProbe,
    HttpConnectivityProbe,
    uuid_id_generator,
    utc_now,
)
from .remote_client import RemoteCartClient

__all__ = [
    "ScanCartError",
    "RequestValidationError",
    "BarcodeValidationError",
    "UnsupportedDestinationError",
    "InvalidStatusTransitionError",
    "RemoteServiceError",
    "ServiceUnavailableError",
    "NotFoundError",
    "ProductNotFoundError",
    "CartItemNotFoundError",
    "QueueStorage",
    "InMemoryQueueStorage",
    "JsonFileQueueStorage",
    "ConnectivityProbe",
    "StaticConnectivityProbe",
    "HttpConnectivityProbe",
    "uuid_id_generator",
    "utc_now",
    "RemoteCartClient",
]
