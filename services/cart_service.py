"""
Catalog and cart service.

Holds the catalog (products, shops, offers, barcode index) and the users'
carts in process memory. Every cart read goes through
modules.cart_aggregator, so the cart page and a shared-cart view of the
same cart always agree.

Cart Rules:
    - One active cart per user, created on the first add
    - Each add inserts a new line; quantities are never merged here
    - Quantity is always >= 1; setting or decrementing below 1 removes
      the line instead of storing zero
    - A line is priced from its selected offer, or else from the
      product's cheapest priced offer

Thread Safety:
    - All cart mutations and reads hold one threading.Lock
    - Catalog data is read-only after construction

Usage:
    catalog = Catalog.from_dict(seed)
    carts = CartService(catalog)

    line = carts.add_item("user-1", "prod-1", 2)
    snapshot = carts.snapshot_for_user("user-1")
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from core.exceptions import (
    CartItemNotFoundError,
    ProductNotFoundError,
    RequestValidationError,
)
from core.runtime import Clock, IdGenerator, utc_now, uuid_id_generator
from models.cart import Cart, CartItem, CartLine, CartSnapshot, Offer, Product, Shop
from modules.cart_aggregator import aggregate_cart
from logging_config import get_logger


logger = get_logger(__name__)


class Catalog:
    """
    Read-only catalog reference data.

    Seed layout (JSON or dict)::

        {
          "shops":    [{"id": "s1", "name": "Don Quijote", "address": "..."}],
          "products": [{"id": "p1", "title": "...", "weight_g": 150, ...}],
          "offers":   [{"id": "o1", "product_id": "p1", "shop_id": "s1", "price_jpy": 1500}],
          "barcodes": [{"code_value": "4901234567894", "product_id": "p1"}]
        }
    """

    def __init__(
        self,
        products: Iterable[Product] = (),
        shops: Iterable[Shop] = (),
        offers: Iterable[Offer] = (),
        barcodes: Optional[Dict[str, str]] = None,
    ):
        self._products: Dict[str, Product] = {p.id: p for p in products}
        self._shops: Dict[str, Shop] = {s.id: s for s in shops}
        self._offers: Dict[str, Offer] = {o.id: o for o in offers}
        self._barcodes: Dict[str, str] = dict(barcodes or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        return cls(
            products=[Product.from_dict(p) for p in data.get("products", [])],
            shops=[
                Shop(id=s["id"], name=s.get("name", ""), address=s.get("address"))
                for s in data.get("shops", [])
            ],
            offers=[
                Offer(
                    id=o["id"],
                    product_id=o["product_id"],
                    shop_id=o.get("shop_id"),
                    price_jpy=o.get("price_jpy"),
                )
                for o in data.get("offers", [])
            ],
            barcodes={b["code_value"]: b["product_id"] for b in data.get("barcodes", [])},
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Catalog":
        """Load a catalog seed file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        catalog = cls.from_dict(data)
        logger.info(
            f"Catalog loaded from {path}: {len(catalog._products)} products, "
            f"{len(catalog._offers)} offers, {len(catalog._barcodes)} barcodes"
        )
        return catalog

    def __len__(self) -> int:
        return len(self._products)

    def get_product(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def get_shop(self, shop_id: Optional[str]) -> Optional[Shop]:
        if shop_id is None:
            return None
        return self._shops.get(shop_id)

    def get_offer(self, offer_id: Optional[str]) -> Optional[Offer]:
        if offer_id is None:
            return None
        return self._offers.get(offer_id)

    def offers_for(self, product_id: str) -> List[Offer]:
        return [o for o in self._offers.values() if o.product_id == product_id]

    def cheapest_offer(self, product_id: str) -> Optional[Offer]:
        """Lowest priced offer; unpriced offers only when nothing is priced."""
        offers = self.offers_for(product_id)
        if not offers:
            return None
        priced = [o for o in offers if o.price_jpy is not None]
        if priced:
            return min(priced, key=lambda o: o.price_jpy)
        return offers[0]

    def resolve_barcode(self, code: str) -> Optional[Dict[str, Any]]:
        """
        Product for a barcode, with its cheapest price as ``estimated_price``.

        Returns:
            Product dict, or None when no product carries this barcode
        """
        product_id = self._barcodes.get(code)
        product = self._products.get(product_id) if product_id else None
        if product is None:
            return None

        offer = self.cheapest_offer(product.id)
        data = product.to_dict()
        data["estimated_price"] = offer.price_jpy if offer else None
        return data


class CartService:
    """In-memory carts keyed by user, read through the shop aggregator."""

    def __init__(
        self,
        catalog: Catalog,
        id_generator: IdGenerator = uuid_id_generator,
        clock: Clock = utc_now,
    ):
        self._catalog = catalog
        self._new_id = id_generator
        self._clock = clock
        self._carts: Dict[str, Cart] = {}
        self._lock = threading.Lock()

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    # =========================================================================
    # CART LOOKUP
    # =========================================================================

    def get_active_cart(self, user_id: str) -> Optional[Cart]:
        with self._lock:
            return self._active_cart_locked(user_id)

    def get_cart(self, cart_id: str) -> Optional[Cart]:
        with self._lock:
            return self._carts.get(cart_id)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_item(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        selected_offer_id: Optional[str] = None,
    ) -> CartLine:
        """
        Add a line to the user's active cart, creating the cart if needed.

        Raises:
            RequestValidationError: Missing user, quantity < 1, or an offer
                that does not belong to the product
            ProductNotFoundError: Unknown product id
        """
        if not user_id:
            raise RequestValidationError("userId is required", field="userId")
        _check_quantity(quantity)

        if self._catalog.get_product(product_id) is None:
            raise ProductNotFoundError(product_id)

        if selected_offer_id is not None:
            offer = self._catalog.get_offer(selected_offer_id)
            if offer is None or offer.product_id != product_id:
                raise RequestValidationError(
                    f"Offer {selected_offer_id} is not an offer for {product_id}",
                    field="selectedOfferId",
                )

        with self._lock:
            cart = self._active_cart_locked(user_id)
            if cart is None:
                cart = Cart(id=self._new_id(), user_id=user_id, created_at=self._clock())
                self._carts[cart.id] = cart
                logger.info(f"Created cart {cart.id[:8]} for user {user_id}")

            item = CartItem(
                id=self._new_id(),
                cart_id=cart.id,
                product_id=product_id,
                quantity=quantity,
                selected_offer_id=selected_offer_id,
            )
            cart.items.append(item)
            line = self._join(item)

        logger.info(f"Added {product_id} x{quantity} to cart {cart.id[:8]}")
        return line

    def update_item(
        self,
        item_id: str,
        quantity: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Optional[CartLine]:
        """
        Change a line's quantity and/or note.

        A quantity below 1 removes the line.

        Returns:
            The updated line, or None if the line was removed

        Raises:
            CartItemNotFoundError: Unknown item id
        """
        if quantity is not None and (isinstance(quantity, bool) or not isinstance(quantity, int)):
            raise RequestValidationError("quantity must be an integer", field="quantity")

        with self._lock:
            cart, item = self._find_item_locked(item_id)

            if quantity is not None and quantity < 1:
                cart.items.remove(item)
                logger.info(f"Removed item {item_id[:8]} (quantity {quantity})")
                return None

            if quantity is not None:
                item.quantity = quantity
            if note is not None:
                item.note = note
            return self._join(item)

    def change_quantity(self, item_id: str, delta: int) -> Optional[CartLine]:
        """Increment/decrement a line; dropping below 1 removes it."""
        with self._lock:
            _, item = self._find_item_locked(item_id)
            target = item.quantity + delta
        return self.update_item(item_id, quantity=target)

    def remove_item(self, item_id: str) -> bool:
        """Delete a line. Returns False when it did not exist."""
        with self._lock:
            try:
                cart, item = self._find_item_locked(item_id)
            except CartItemNotFoundError:
                return False
            cart.items.remove(item)

        logger.info(f"Removed item {item_id[:8]} from cart {cart.id[:8]}")
        return True

    # =========================================================================
    # READ-SIDE VIEW
    # =========================================================================

    def lines_for_cart(self, cart_id: str) -> List[CartLine]:
        with self._lock:
            cart = self._carts.get(cart_id)
            if cart is None:
                return []
            return [self._join(item) for item in cart.items]

    def snapshot_for_cart(self, cart_id: str) -> Optional[CartSnapshot]:
        """Current grouped view of a cart, or None if it does not exist."""
        with self._lock:
            cart = self._carts.get(cart_id)
            if cart is None:
                return None
            lines = [self._join(item) for item in cart.items]
        return aggregate_cart(cart, lines)

    def snapshot_for_user(self, user_id: str) -> Optional[CartSnapshot]:
        cart = self.get_active_cart(user_id)
        if cart is None:
            return None
        return self.snapshot_for_cart(cart.id)

    # =========================================================================
    # INTERNALS (caller holds self._lock)
    # =========================================================================

    def _active_cart_locked(self, user_id: str) -> Optional[Cart]:
        for cart in self._carts.values():
            if cart.user_id == user_id and cart.status == "active":
                return cart
        return None

    def _find_item_locked(self, item_id: str):
        for cart in self._carts.values():
            for item in cart.items:
                if item.id == item_id:
                    return cart, item
        raise CartItemNotFoundError(item_id)

    def _join(self, item: CartItem) -> CartLine:
        offer = self._catalog.get_offer(item.selected_offer_id)
        if offer is None:
            offer = self._catalog.cheapest_offer(item.product_id)
        return CartLine(
            item=item,
            product=self._catalog.get_product(item.product_id),
            offer=offer,
            shop=self._catalog.get_shop(offer.shop_id) if offer else None,
        )


def _check_quantity(quantity: Any) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise RequestValidationError("quantity must be an integer >= 1", field="quantity")
