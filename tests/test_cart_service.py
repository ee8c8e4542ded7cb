"""
Unit tests for the catalog and CartService.
"""

import json

import pytest

from core.exceptions import CartItemNotFoundError, ProductNotFoundError, RequestValidationError
from services.cart_service import Catalog, CartService

from conftest import CATALOG_SEED, VALID_EAN13


# Fixtures

@pytest.fixture
def carts(catalog, ids, clock):
    return CartService(catalog, id_generator=ids, clock=clock)


class TestCatalog:
    """Test catalog lookups."""

    def test_cheapest_offer(self, catalog):
        assert catalog.cheapest_offer("prod-1").id == "offer-1b"

    def test_unpriced_offer_used_when_nothing_priced(self, catalog):
        assert catalog.cheapest_offer("prod-3").id == "offer-3a"

    def test_resolve_barcode(self, catalog):
        product = catalog.resolve_barcode(VALID_EAN13)
        assert product["id"] == "prod-1"
        assert product["estimated_price"] == 450

    def test_resolve_unknown_barcode_is_none(self, catalog):
        assert catalog.resolve_barcode("12345678") is None

    def test_load_seed_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(CATALOG_SEED), encoding="utf-8")

        catalog = Catalog.load(path)

        assert len(catalog) == 3
        assert catalog.get_shop("shop-2").name == "Bic Camera"


class TestAddItem:
    """Test adding lines."""

    def test_first_add_creates_cart(self, carts):
        assert carts.get_active_cart("user-1") is None

        line = carts.add_item("user-1", "prod-1", 2)

        cart = carts.get_active_cart("user-1")
        assert cart is not None
        assert line.item.cart_id == cart.id
        assert line.item.quantity == 2

    def test_priced_from_cheapest_offer_by_default(self, carts):
        line = carts.add_item("user-1", "prod-1", 1)
        assert line.offer.id == "offer-1b"
        assert line.shop.name == "Bic Camera"
        assert line.unit_price == 450

    def test_selected_offer_is_used(self, carts):
        line = carts.add_item("user-1", "prod-1", 1, selected_offer_id="offer-1a")
        assert line.unit_price == 500
        assert line.shop.name == "Don Quijote"

    def test_offer_must_belong_to_product(self, carts):
        with pytest.raises(RequestValidationError):
            carts.add_item("user-1", "prod-1", 1, selected_offer_id="offer-2a")

    def test_unknown_product(self, carts):
        with pytest.raises(ProductNotFoundError):
            carts.add_item("user-1", "prod-404", 1)

    @pytest.mark.parametrize("quantity", [0, -2, 1.0, True])
    def test_invalid_quantity(self, carts, quantity):
        with pytest.raises(RequestValidationError):
            carts.add_item("user-1", "prod-1", quantity)

    def test_lines_are_not_merged(self, carts):
        carts.add_item("user-1", "prod-1", 2)
        carts.add_item("user-1", "prod-1", 3)

        snapshot = carts.snapshot_for_user("user-1")
        assert [p.line.item.quantity for p in snapshot.lines] == [2, 3]

    def test_carts_are_per_user(self, carts):
        carts.add_item("user-1", "prod-1", 1)
        carts.add_item("user-2", "prod-2", 1)

        assert carts.get_active_cart("user-1").id != carts.get_active_cart("user-2").id


class TestUpdateItem:
    """Test quantity and note changes."""

    def test_update_quantity_and_note(self, carts):
        line = carts.add_item("user-1", "prod-1", 1)

        updated = carts.update_item(line.item.id, quantity=5, note="for mum")

        assert updated.item.quantity == 5
        assert updated.item.note == "for mum"

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_quantity_below_one_removes_line(self, carts, quantity):
        line = carts.add_item("user-1", "prod-1", 1)

        assert carts.update_item(line.item.id, quantity=quantity) is None
        assert carts.snapshot_for_user("user-1").lines == []

    def test_change_quantity(self, carts):
        line = carts.add_item("user-1", "prod-1", 2)

        assert carts.change_quantity(line.item.id, 1).item.quantity == 3
        assert carts.change_quantity(line.item.id, -2).item.quantity == 1
        assert carts.change_quantity(line.item.id, -1) is None

    def test_unknown_item(self, carts):
        with pytest.raises(CartItemNotFoundError):
            carts.update_item("nope", quantity=2)

    def test_remove_item(self, carts):
        line = carts.add_item("user-1", "prod-1", 1)
        assert carts.remove_item(line.item.id) is True
        assert carts.remove_item(line.item.id) is False


class TestSnapshots:
    """Test the grouped read view."""

    def test_snapshot_groups_and_totals(self, carts):
        carts.add_item("user-1", "prod-1", 2)                               # Bic 450 x2
        carts.add_item("user-1", "prod-2", 1)                               # Don Quijote (shop-3) 200
        carts.add_item("user-1", "prod-1", 1, selected_offer_id="offer-1a")  # Don Quijote (shop-1) 500

        snapshot = carts.snapshot_for_user("user-1")

        subtotals = {g.shop_name: g.subtotal for g in snapshot.groups}
        assert subtotals == {"Bic Camera": 900, "Don Quijote": 700}
        assert snapshot.grand_total == 1600

    def test_unpriced_product_in_snapshot(self, carts):
        carts.add_item("user-1", "prod-3", 2)
        snapshot = carts.snapshot_for_user("user-1")
        assert snapshot.grand_total == 0
        assert len(snapshot.lines) == 1

    def test_no_cart(self, carts):
        assert carts.snapshot_for_user("user-9") is None
        assert carts.snapshot_for_cart("cart-9") is None
        assert carts.lines_for_cart("cart-9") == []
