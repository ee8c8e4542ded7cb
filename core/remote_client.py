"""
HTTP client for the remote catalog/cart service.

Used for direct barcode resolution while online and by the SyncEngine when
draining the offline queue. One client per caller; the underlying
httpx.Client is reused across requests and closed with ``close()``.

Error mapping:
    - 2xx              -> parsed JSON body
    - other status     -> RemoteServiceError(status_code=...)
    - transport error  -> ServiceUnavailableError

Usage:
    client = RemoteCartClient(base_url, timeout_seconds=10, user_id="u-1")

    product = client.resolve_barcode("4901234567894")   # dict or None
    item = client.add_cart_item("prod-1", 2)

    client.close()
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from logging_config import get_logger

from .exceptions import RemoteServiceError, ServiceUnavailableError


class RemoteCartClient:
    """
    Thin wrapper over the REST surface of the remote service.

    The client does no retrying and no merging; each call is exactly one
    request. Callers decide what a failure means (surface it, or mark a
    queue record failed).
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        user_id: str = "",
        http_client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the remote service
            timeout_seconds: Transport timeout for every request
            user_id: Owner of the cart that queued items are added to
            http_client: Preconfigured httpx.Client (tests pass one with a MockTransport)
            logger: Logger instance (creates default if not provided)
        """
        self._client = http_client or httpx.Client(base_url=base_url, timeout=timeout_seconds)
        self._user_id = user_id
        self._logger = logger or get_logger(__name__)

    @property
    def user_id(self) -> str:
        return self._user_id

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RemoteCartClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def resolve_barcode(self, raw_barcode: str) -> Optional[Dict[str, Any]]:
        """
        Resolve a barcode to a catalog product.

        Returns:
            Product dict, or None when the catalog has no match (not an error)

        Raises:
            RemoteServiceError: Non-2xx response
            ServiceUnavailableError: No response
        """
        data = self._post("resolve_barcode", "/scan/resolve", {"rawBarcode": raw_barcode})
        product = data.get("product")
        self._logger.debug(
            f"Resolved {raw_barcode}: {'match' if product else 'no match'}"
        )
        return product

    def add_cart_item(
        self,
        product_id: str,
        quantity: int,
        selected_offer_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Add one line to the user's active cart.

        The remote service owns any quantity merging; this sends the record
        exactly as queued.

        Returns:
            The created cartItem dict
        """
        payload: Dict[str, Any] = {
            "productId": product_id,
            "quantity": quantity,
            "userId": self._user_id,
        }
        if selected_offer_id:
            payload["selectedOfferId"] = selected_offer_id

        data = self._post("add_cart_item", "/cart/items", payload)
        return data.get("cartItem") or {}

    def _post(self, operation: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.post(path, json=payload)
        except httpx.RequestError as e:
            self._logger.warning(f"{operation} transport failure: {e}")
            raise ServiceUnavailableError(operation, str(e)) from e

        return self._handle_response(operation, response)

    def _handle_response(self, operation: str, response: httpx.Response) -> Dict[str, Any]:
        if response.is_success:
            try:
                body = response.json()
            except ValueError as e:
                raise RemoteServiceError(
                    operation, f"Invalid JSON from {operation}: {e}", response.status_code
                ) from e
            return body if isinstance(body, dict) else {}

        # Error body is {"error": "..."} when the service produced it
        try:
            message = response.json().get("error", response.reason_phrase)
        except (ValueError, AttributeError):
            message = response.reason_phrase

        self._logger.warning(f"{operation} rejected with HTTP {response.status_code}: {message}")
        raise RemoteServiceError(operation, f"{operation} failed: {message}", response.status_code)
