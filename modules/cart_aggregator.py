"""
Read-side cart aggregation.

Groups cart lines by the shop's display name and totals them. Used by the
cart view and by shared-cart resolution, so both always show the same
numbers for the same cart.

Grouping is by NAME, not shop id: two different shops that happen to share
a display name land in one group.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from models.cart import Cart, CartLine, CartSnapshot, PricedLine, ShopGroup


UNKNOWN_SHOP = "Unknown Shop"


def shop_name_for(line: CartLine) -> str:
    if line.shop is not None and line.shop.name:
        return line.shop.name
    return UNKNOWN_SHOP


def line_total(line: CartLine) -> int:
    """unit price x quantity; an unpriced line counts as 0."""
    return (line.unit_price or 0) * line.item.quantity


def aggregate_cart(cart: Cart, lines: Iterable[CartLine]) -> CartSnapshot:
    """Build the grouped, totalled view of ``cart`` from its joined lines."""
    priced: List[PricedLine] = []
    grouped: Dict[str, List[PricedLine]] = {}

    for line in lines:
        entry = PricedLine(line=line, line_total=line_total(line))
        priced.append(entry)
        grouped.setdefault(shop_name_for(line), []).append(entry)

    groups = [
        ShopGroup(
            shop_name=name,
            lines=entries,
            subtotal=sum(e.line_total for e in entries),
        )
        for name, entries in grouped.items()
    ]

    return CartSnapshot(
        cart=cart,
        lines=priced,
        groups=groups,
        grand_total=sum(g.subtotal for g in groups),
    )


def total_weight_grams(lines: Iterable[CartLine]) -> int:
    """Shipment weight for a quote; products without a weight count as 0 g."""
    total = 0
    for line in lines:
        weight = line.product.weight_g if line.product else None
        total += (weight or 0) * line.item.quantity
    return total
