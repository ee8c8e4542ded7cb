"""
Integration tests for the Flask routes.

The app is built from TestingConfig with an in-memory queue, a seeded
catalog and a MagicMock in place of the remote service.
"""

import json
from unittest.mock import MagicMock

import pytest

from app import create_app
from config import TestingConfig
from core.exceptions import RemoteServiceError
from core.runtime import StaticConnectivityProbe
from services.share_service import CartShareIssuer, InMemoryShareStore

from conftest import CATALOG_SEED, SECOND_VALID_EAN13, VALID_EAN13


# Fixtures

@pytest.fixture
def remote():
    mock_remote = MagicMock()
    mock_remote.resolve_barcode.return_value = {"id": "prod-1", "title": "Matcha KitKat"}
    mock_remote.add_cart_item.return_value = {"id": "remote-item-1", "quantity": 1}
    return mock_remote


@pytest.fixture
def probe():
    return StaticConnectivityProbe(online=True)


@pytest.fixture
def app(tmp_path, remote, probe):
    seed_path = tmp_path / "catalog.json"
    seed_path.write_text(json.dumps(CATALOG_SEED), encoding="utf-8")

    class SeededTestingConfig(TestingConfig):
        CATALOG_SEED_PATH = str(seed_path)
        APP_PUBLIC_URL = "https://scan.example"

    return create_app(SeededTestingConfig, remote_client=remote, connectivity=probe)


@pytest.fixture
def client(app):
    return app.test_client()


def add_item(client, product_id="prod-1", quantity=1, user_id="user-1", **extra):
    body = {"productId": product_id, "quantity": quantity, "userId": user_id}
    body.update(extra)
    return client.post("/cart/items", json=body)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert data["checks"]["catalog_products"] == 3
        assert data["checks"]["queue"] == {"pending": 0, "failed": 0}

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/nowhere")
        assert response.status_code == 404
        assert "error" in response.get_json()


class TestScanResolve:
    """Test POST /scan/resolve."""

    def test_known_barcode(self, client):
        response = client.post("/scan/resolve", json={"rawBarcode": VALID_EAN13})
        assert response.status_code == 200
        product = response.get_json()["product"]
        assert product["id"] == "prod-1"
        assert product["estimated_price"] == 450

    def test_unknown_barcode_is_null_not_error(self, client):
        response = client.post("/scan/resolve", json={"rawBarcode": "12345678"})
        assert response.status_code == 200
        assert response.get_json()["product"] is None

    def test_bad_checksum_is_400(self, client):
        response = client.post("/scan/resolve", json={"rawBarcode": "4901234567895"})
        assert response.status_code == 400
        assert response.get_json()["details"]["symbology"] == "EAN-13/JAN-13"

    @pytest.mark.parametrize("body", [{}, {"rawBarcode": ""}, {"rawBarcode": 123}])
    def test_malformed_body_is_400(self, client, body):
        assert client.post("/scan/resolve", json=body).status_code == 400

    def test_non_json_body_is_400(self, client):
        response = client.post("/scan/resolve", data="rawBarcode=1", content_type="text/plain")
        assert response.status_code == 400


class TestCartRoutes:
    """Test the cart endpoints."""

    def test_no_cart(self, client):
        response = client.get("/cart?userId=user-1")
        assert response.status_code == 200
        assert response.get_json() == {"cart": None, "items": []}

    def test_user_id_required(self, client):
        assert client.get("/cart").status_code == 400

    def test_add_and_view(self, client):
        add_item(client, "prod-1", 2)
        add_item(client, "prod-2", 1)

        data = client.get("/cart?userId=user-1").get_json()

        assert len(data["items"]) == 2
        assert data["grandTotal"] == 1100
        assert set(data["shopGroups"]) == {"Bic Camera", "Don Quijote"}
        assert data["subtotals"]["Bic Camera"] == 900

    def test_add_returns_cart_item(self, client):
        response = add_item(client, "prod-1", 2, selectedOfferId="offer-1a")
        assert response.status_code == 200
        item = response.get_json()["cartItem"]
        assert item["quantity"] == 2
        assert item["offers"]["price_jpy"] == 500

    def test_add_unknown_product_is_404(self, client):
        assert add_item(client, "prod-404").status_code == 404

    @pytest.mark.parametrize("quantity", [0, -1, "2", 1.5])
    def test_add_bad_quantity_is_400(self, client, quantity):
        assert add_item(client, quantity=quantity).status_code == 400

    def test_patch_quantity_and_sanitized_note(self, client):
        item_id = add_item(client).get_json()["cartItem"]["id"]

        response = client.patch(
            f"/cart/items/{item_id}",
            json={"quantity": 4, "note": "  <b>gift</b> wrap  "},
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["removed"] is False
        assert data["cartItem"]["quantity"] == 4
        assert data["cartItem"]["note"] == "gift wrap"

    def test_patch_zero_removes_line(self, client):
        item_id = add_item(client).get_json()["cartItem"]["id"]

        response = client.patch(f"/cart/items/{item_id}", json={"quantity": 0})

        assert response.get_json() == {"cartItem": None, "removed": True}
        assert client.get("/cart?userId=user-1").get_json()["items"] == []

    def test_patch_unknown_item_is_404(self, client):
        assert client.patch("/cart/items/nope", json={"quantity": 2}).status_code == 404

    def test_delete(self, client):
        item_id = add_item(client).get_json()["cartItem"]["id"]

        response = client.delete(f"/cart/items/{item_id}")

        assert response.get_json() == {"success": True}
        assert client.get("/cart?userId=user-1").get_json()["items"] == []

    def test_delete_unknown_item_still_succeeds(self, client):
        assert client.delete("/cart/items/nope").get_json() == {"success": True}


class TestShareRoutes:
    """Test share link issue and lookup."""

    def test_share_without_cart_is_404(self, client):
        response = client.post("/cart/share", json={"userId": "user-1"})
        assert response.status_code == 404

    def test_share_and_resolve(self, client):
        add_item(client, "prod-1", 2)

        response = client.post("/cart/share", json={"userId": "user-1", "expiresIn": 60000})

        assert response.status_code == 200
        link = response.get_json()["shareLink"]
        assert len(link["token"]) == 16
        assert link["url"] == f"https://scan.example/cart/shared/{link['token']}"

        shared = client.get(f"/cart/share?token={link['token']}")
        assert shared.status_code == 200
        data = shared.get_json()
        assert data["grandTotal"] == 900
        assert data["shareInfo"]["token"] == link["token"]

    def test_shared_view_is_live(self, client):
        add_item(client, "prod-1", 1)
        token = client.post("/cart/share", json={"userId": "user-1"}).get_json()["shareLink"]["token"]
        add_item(client, "prod-2", 1)

        data = client.get(f"/cart/share?token={token}").get_json()
        assert len(data["items"]) == 2

    def test_unknown_token_is_404(self, client):
        assert client.get("/cart/share?token=0000000000000000").status_code == 404

    def test_token_required(self, client):
        assert client.get("/cart/share").status_code == 400

    def test_bad_expiry_is_400(self, client):
        add_item(client)
        response = client.post("/cart/share", json={"userId": "user-1", "expiresIn": 0})
        assert response.status_code == 400

    def test_expired_is_410(self, app, client, clock):
        cart_service = app.config["CART_SERVICE"]
        issuer = CartShareIssuer(InMemoryShareStore(), cart_service, clock=clock)
        app.config["SHARE_ISSUER"] = issuer

        add_item(client)
        cart = cart_service.get_active_cart("user-1")
        share = issuer.create_share(cart.id, created_by="user-1", expires_in_ms=1000)
        clock.advance(seconds=1)

        response = client.get(f"/cart/share?token={share.token}")
        assert response.status_code == 410


class TestShippingRoutes:
    """Test shipping quotes over HTTP."""

    def test_quote(self, client):
        response = client.post("/ship/quote", json={"country": "US", "totalWeightG": 1000})
        assert response.status_code == 200
        assert response.get_json() == {
            "total_weight_g": 1000,
            "shipping_cost_jpy": 2500,
            "estimated_days": 7,
            "breakdown": {"base_cost": 2000, "weight_cost": 500, "total_weight_kg": 1.0},
        }

    def test_unsupported_country_is_400(self, client):
        response = client.post("/ship/quote", json={"country": "BR", "totalWeightG": 1000})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Unsupported country: BR"

    def test_negative_weight_is_400(self, client):
        response = client.post("/ship/quote", json={"country": "US", "totalWeightG": -5})
        assert response.status_code == 400

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_weight_is_400(self, client, literal):
        response = client.post(
            "/ship/quote",
            data='{"country": "US", "totalWeightG": ' + literal + "}",
            content_type="application/json",
        )
        assert response.status_code == 400
        assert response.get_json()["details"] == {"field": "totalWeightG"}

    def test_very_large_weight_is_quoted(self, client):
        response = client.post("/ship/quote", json={"country": "JP", "totalWeightG": 10**30})
        assert response.status_code == 200

    def test_quote_from_cart_weight(self, client):
        add_item(client, "prod-1", 2)  # 150 g each
        add_item(client, "prod-2", 1)  # 80 g

        response = client.post("/ship/quote", json={"country": "JP", "userId": "user-1"})

        data = response.get_json()
        assert data["total_weight_g"] == 380
        # 0.38 kg * 200 = 76
        assert data["shipping_cost_jpy"] == 1076

    def test_quote_for_empty_cart_is_400(self, client):
        response = client.post("/ship/quote", json={"country": "JP", "userId": "user-1"})
        assert response.status_code == 400

    def test_countries(self, client):
        countries = client.get("/ship/countries").get_json()["countries"]
        assert len(countries) == 7


class TestDeviceAndQueueRoutes:
    """Test the offline-aware device endpoints and queue management."""

    def test_online_scan_resolves_remotely(self, client, remote):
        response = client.post("/device/scan", json={"rawBarcode": VALID_EAN13})

        assert response.status_code == 200
        assert response.get_json()["product"]["id"] == "prod-1"
        remote.resolve_barcode.assert_called_once_with(VALID_EAN13)

    def test_remote_failure_is_502(self, client, remote):
        remote.resolve_barcode.side_effect = RemoteServiceError("resolve_barcode", "down", 503)
        response = client.post("/device/scan", json={"rawBarcode": VALID_EAN13})
        assert response.status_code == 502

    def test_unexpected_error_is_json_500(self, client, remote):
        remote.resolve_barcode.side_effect = RuntimeError("kaboom")
        response = client.post("/device/scan", json={"rawBarcode": VALID_EAN13})
        assert response.status_code == 500
        assert response.get_json() == {"error": "Internal server error"}

    def test_invalid_scan_is_400_and_not_queued(self, client, app):
        response = client.post("/device/scan", json={"rawBarcode": "4901234567895"})
        assert response.status_code == 400
        assert app.config["OFFLINE_QUEUE"].list_scans() == []

    def test_offline_then_reconnect_drains(self, client, remote):
        client.post("/connectivity", json={"online": False})

        scan = client.post("/device/scan", json={"rawBarcode": VALID_EAN13})
        add = client.post("/device/cart-items", json={"productId": "prod-1", "quantity": 2})
        assert scan.status_code == 202
        assert add.status_code == 202
        remote.resolve_barcode.assert_not_called()

        queue = client.get("/queue").get_json()
        assert queue["counts"]["scans"]["pending"] == 1
        assert queue["cartItems"][0]["quantity"] == 2

        response = client.post("/connectivity", json={"online": True})

        sync = response.get_json()["sync"]
        assert sync["synced"] == 2
        remote.add_cart_item.assert_called_once_with("prod-1", 2)
        queue = client.get("/queue").get_json()
        assert queue["scans"][0]["status"] == "synced"
        assert queue["cartItems"][0]["remoteItem"] == {"id": "remote-item-1", "quantity": 1}

    def test_online_cart_item_goes_to_remote(self, client, remote):
        response = client.post("/device/cart-items", json={"productId": "prod-1", "quantity": 1})
        assert response.status_code == 200
        assert response.get_json()["cartItem"] == {"id": "remote-item-1", "quantity": 1}

    def test_connectivity_requires_boolean(self, client):
        assert client.post("/connectivity", json={"online": "yes"}).status_code == 400

    def test_retry_failed_record(self, client, remote):
        remote.add_cart_item.side_effect = RemoteServiceError("add_cart_item", "rejected", 500)
        record_id = client.post(
            "/queue/cart-items", json={"productId": "prod-1", "quantity": 1}
        ).get_json()["id"]

        report = client.post("/sync").get_json()
        assert report["failed"] == 1

        response = client.post(f"/queue/cart-items/{record_id}/retry")
        assert response.status_code == 201
        assert response.get_json()["id"] != record_id

    def test_retry_pending_is_409(self, client):
        record_id = client.post("/queue/scans", json={"barcode": SECOND_VALID_EAN13}).get_json()["id"]
        assert client.post(f"/queue/scans/{record_id}/retry").status_code == 409

    def test_retry_unknown_is_404(self, client):
        assert client.post("/queue/scans/missing/retry").status_code == 404
        assert client.post("/queue/orders/missing/retry").status_code == 404

    def test_enqueue_invalid_scan_is_400(self, client):
        assert client.post("/queue/scans", json={"barcode": "abc"}).status_code == 400

    def test_remove_record(self, client):
        record_id = client.post("/queue/scans", json={"barcode": VALID_EAN13}).get_json()["id"]
        assert client.delete(f"/queue/scans/{record_id}").get_json() == {"removed": True}
        assert client.delete(f"/queue/scans/{record_id}").get_json() == {"removed": False}

    def test_prune(self, client):
        client.post("/queue/scans", json={"barcode": VALID_EAN13})
        client.post("/sync")

        assert client.post("/queue/prune").get_json() == {"removed": 0}
        assert client.post("/queue/prune", json={"olderThanSeconds": 0}).get_json() == {"removed": 1}

    def test_sync_while_offline_is_skipped(self, client):
        client.post("/connectivity", json={"online": False})
        report = client.post("/sync").get_json()
        assert report["skipped"] is True
        assert report["skipReason"] == "offline"
