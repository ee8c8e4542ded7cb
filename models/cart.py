"""
Catalog and cart data models.

Products, shops and offers are catalog reference data. A Cart holds
CartItems; the presented view (CartSnapshot) is derived from them on every
read by modules.cart_aggregator and is never stored.

Prices are integer minor units (JPY has no subunit, so 1 unit = 1 yen).
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any, List, Optional


@dataclass(frozen=True)
class Shop:
    """A shop selling catalog products."""

    id: str
    name: str
    address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Product:
    """A catalog product."""

    id: str
    title: str
    brand: Optional[str] = None
    category: Optional[str] = None
    cover_image_url: Optional[str] = None
    description: Optional[str] = None
    weight_g: Optional[int] = None
    """Shipping weight in grams, when known."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            brand=data.get("brand"),
            category=data.get("category"),
            cover_image_url=data.get("cover_image_url"),
            description=data.get("description"),
            weight_g=data.get("weight_g"),
        )


@dataclass(frozen=True)
class Offer:
    """A shop's price for a product."""

    id: str
    product_id: str
    shop_id: Optional[str]
    price_jpy: Optional[int]
    """None when the shop has not published a price."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CartItem:
    """
    One line in a user's cart.

    Mutable: quantity and note change through CartService. Quantity never
    drops below 1; a decrement past 1 removes the item instead.
    """

    id: str
    cart_id: str
    product_id: str
    quantity: int
    selected_offer_id: Optional[str] = None
    note: Optional[str] = None


@dataclass
class Cart:
    """A user's cart. Only one cart per user is active at a time."""

    id: str
    user_id: str
    created_at: datetime
    status: str = "active"
    items: List[CartItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cart header only; items are presented through a CartSnapshot."""
        return {
            "id": self.id,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class CartLine:
    """
    A cart item joined with its product and the offer it is priced from.

    Input row for the aggregator.
    """

    item: CartItem
    product: Optional[Product]
    offer: Optional[Offer]
    shop: Optional[Shop]

    @property
    def unit_price(self) -> Optional[int]:
        return self.offer.price_jpy if self.offer else None

    def to_dict(self) -> Dict[str, Any]:
        """Cart item as returned by the cart endpoints, with its offer and shop nested."""
        offer = None
        if self.offer is not None:
            offer = {
                "id": self.offer.id,
                "price_jpy": self.offer.price_jpy,
                "shops": self.shop.to_dict() if self.shop else None,
            }
        return {
            "id": self.item.id,
            "quantity": self.item.quantity,
            "product_id": self.item.product_id,
            "selected_offer_id": self.item.selected_offer_id,
            "note": self.item.note,
            "products": self.product.to_dict() if self.product else None,
            "offers": offer,
        }


@dataclass(frozen=True)
class PricedLine:
    """A CartLine with its line total computed."""

    line: CartLine
    line_total: int

    def to_dict(self) -> Dict[str, Any]:
        data = self.line.to_dict()
        data["line_total"] = self.line_total
        return data


@dataclass(frozen=True)
class ShopGroup:
    """Cart lines that share a shop display name."""

    shop_name: str
    lines: List[PricedLine]
    subtotal: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shopName": self.shop_name,
            "items": [p.to_dict() for p in self.lines],
            "subtotal": self.subtotal,
        }


@dataclass(frozen=True)
class CartSnapshot:
    """
    Materialized view of a cart grouped by shop.

    Built fresh on every read; holding one does not freeze the cart.
    """

    cart: Cart
    lines: List[PricedLine]
    """All lines in cart order."""

    groups: List[ShopGroup]
    """Lines partitioned by shop name, groups in first-seen order."""

    grand_total: int

    def to_dict(self) -> Dict[str, Any]:
        """Response body shared by GET /cart and GET /cart/share."""
        return {
            "cart": self.cart.to_dict(),
            "items": [p.to_dict() for p in self.lines],
            "shopGroups": {
                group.shop_name: [p.to_dict() for p in group.lines]
                for group in self.groups
            },
            "subtotals": {group.shop_name: group.subtotal for group in self.groups},
            "grandTotal": self.grand_total,
        }
