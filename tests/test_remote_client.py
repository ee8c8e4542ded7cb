"""
Unit tests for the remote catalog/cart HTTP client.

Requests are served by an httpx.MockTransport; nothing leaves the process.
"""

import json

import httpx
import pytest

from core.exceptions import RemoteServiceError, ServiceUnavailableError
from core.remote_client import RemoteCartClient


BASE_URL = "http://remote.test"


def make_client(handler, user_id="user-1"):
    http_client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return RemoteCartClient(BASE_URL, user_id=user_id, http_client=http_client)


class TestResolveBarcode:
    """Test POST /scan/resolve."""

    def test_returns_product(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"product": {"id": "prod-1"}})

        with make_client(handler) as client:
            assert client.resolve_barcode("4901234567894") == {"id": "prod-1"}

        assert seen == [("POST", "/scan/resolve", {"rawBarcode": "4901234567894"})]

    def test_null_product_is_not_an_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"product": None}))
        assert client.resolve_barcode("12345678") is None

    def test_error_status_raises_with_message(self):
        client = make_client(lambda request: httpx.Response(400, json={"error": "Invalid request"}))

        with pytest.raises(RemoteServiceError) as exc_info:
            client.resolve_barcode("x")

        assert exc_info.value.status_code == 400
        assert "Invalid request" in exc_info.value.message
        assert not isinstance(exc_info.value, ServiceUnavailableError)

    def test_error_without_json_body(self):
        client = make_client(lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(RemoteServiceError) as exc_info:
            client.resolve_barcode("12345678")
        assert exc_info.value.status_code == 502

    def test_transport_error_is_service_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(ServiceUnavailableError) as exc_info:
            client.resolve_barcode("12345678")
        assert exc_info.value.status_code is None
        assert exc_info.value.operation == "resolve_barcode"

    def test_invalid_json_on_success(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(RemoteServiceError):
            client.resolve_barcode("12345678")


class TestAddCartItem:
    """Test POST /cart/items."""

    def test_sends_record_as_queued(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"cartItem": {"id": "item-1", "quantity": 3}})

        client = make_client(handler, user_id="user-7")

        assert client.add_cart_item("prod-1", 3) == {"id": "item-1", "quantity": 3}
        assert bodies == [{"productId": "prod-1", "quantity": 3, "userId": "user-7"}]

    def test_selected_offer_is_forwarded(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"cartItem": {"id": "item-1"}})

        make_client(handler).add_cart_item("prod-1", 1, selected_offer_id="offer-1a")
        assert bodies[0]["selectedOfferId"] == "offer-1a"

    def test_missing_cart_item_is_empty_dict(self):
        client = make_client(lambda request: httpx.Response(200, json={}))
        assert client.add_cart_item("prod-1", 1) == {}

    def test_not_found(self):
        client = make_client(lambda request: httpx.Response(404, json={"error": "Product not found"}))
        with pytest.raises(RemoteServiceError) as exc_info:
            client.add_cart_item("prod-404", 1)
        assert exc_info.value.status_code == 404


def test_logs_under_application_namespace():
    client = make_client(lambda request: httpx.Response(200, json={}))
    assert client._logger.name == "scan_cart.core.remote_client"
