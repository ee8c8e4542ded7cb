"""
Custom exceptions for ScanCart.

Exception Hierarchy:
    ScanCartError (base)
    ├── RequestValidationError          - Malformed input, rejected immediately
    │   ├── BarcodeValidationError      - Barcode format or checksum invalid
    │   └── UnsupportedDestinationError - No shipping rule for the country
    ├── InvalidStatusTransitionError    - Queue record status would revert
    ├── RemoteServiceError              - Remote service answered non-2xx
    │   └── ServiceUnavailableError     - Remote service unreachable
    └── NotFoundError
        ├── ProductNotFoundError
        └── CartItemNotFoundError

Usage:
    Validation errors are never retried and never reach the queue.
    Remote errors propagate to the caller during direct resolution and
    become failed queue records during a sync drain.
    A missing share, cart or barcode match is NOT an exception; those are
    returned as None or an explicit resolution status.
"""

from typing import Optional, Dict, Any


class ScanCartError(Exception):
    """
    Base exception for all ScanCart errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# VALIDATION ERRORS - rejected synchronously, never retried
# =============================================================================

class RequestValidationError(ScanCartError):
    """A request body or argument failed validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, details)
        self.field = field


class BarcodeValidationError(RequestValidationError):
    """
    A scanned code is not an accepted barcode.

    Carries the symbology the code was classified as, so the caller can tell
    a bad EAN-13 check digit apart from an unsupported format.
    """

    def __init__(self, barcode: str, symbology: str, reason: str):
        super().__init__(f"Invalid barcode {barcode!r}: {reason}", field="rawBarcode")
        self.details.update({"barcode": barcode, "symbology": symbology})
        self.barcode = barcode
        self.symbology = symbology
        self.reason = reason


class UnsupportedDestinationError(RequestValidationError):
    """No shipping rule exists for the requested destination country."""

    def __init__(self, country_code: str):
        super().__init__(f"Unsupported country: {country_code}", field="country")
        self.details["country"] = country_code
        self.country_code = country_code


# =============================================================================
# QUEUE ERRORS
# =============================================================================

class InvalidStatusTransitionError(ScanCartError):
    """
    A queue record was asked to leave a terminal status.

    Status only moves pending -> synced or pending -> failed. Once terminal,
    a record keeps its status until it is removed or pruned.
    """

    def __init__(self, record_id: str, current: str, requested: str):
        message = f"Record {record_id[:8]} cannot move from {current} to {requested}"
        details = {
            "record_id": record_id,
            "current": current,
            "requested": requested,
        }
        super().__init__(message, details)
        self.record_id = record_id
        self.current = current
        self.requested = requested


# =============================================================================
# REMOTE SERVICE ERRORS
# =============================================================================

class RemoteServiceError(ScanCartError):
    """
    The remote catalog/cart service rejected a request.

    Attributes:
        operation: Name of the remote call (e.g. "resolve_barcode")
        status_code: HTTP status, or None when no response was received
    """

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.operation = operation
        self.status_code = status_code


class ServiceUnavailableError(RemoteServiceError):
    """
    The remote service could not be reached at all.

    Typical causes:
    - Device went offline between the probe and the request
    - DNS or TLS failure
    - Transport timeout
    """

    def __init__(self, operation: str, reason: str):
        super().__init__(operation, f"Remote service unavailable during {operation}: {reason}")
        self.details["resolution"] = "Queue the operation and sync when back online"
        self.reason = reason


# =============================================================================
# NOT FOUND (only where the caller asked for a specific entity to mutate)
# =============================================================================

class NotFoundError(ScanCartError):
    """A referenced entity does not exist."""


class ProductNotFoundError(NotFoundError):
    """Product id is not in the catalog."""

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}", {"product_id": product_id})
        self.product_id = product_id


class CartItemNotFoundError(NotFoundError):
    """Cart item id is not in any cart."""

    def __init__(self, item_id: str):
        super().__init__(f"Cart item not found: {item_id}", {"item_id": item_id})
        self.item_id = item_id
