"""
Data models for ScanCart.

This module contains dataclasses for:
- ScanRecord / CartItemRecord: Offline queue entries and their status
- Product, Shop, Offer, Cart, CartItem: Catalog and cart data
- CartLine, ShopGroup, CartSnapshot: Read-side cart view grouped by shop
- ShippingRule, ShippingQuote: Shipping reference data and estimates
- CartShare, ShareResolution: Share tokens and their lookup outcome

Reference data (Product, Shop, Offer, ShippingRule, CartShare) is frozen.
"""

from .queue_record import RecordStatus, ScanRecord, CartItemRecord
from .cart import (
    Shop,
    Product,
    Offer,
    CartItem,
    Cart,
    CartLine,
    PricedLine,
    ShopGroup,
    CartSnapshot,
)
from .shipping import ShippingRule, ShippingQuote, QuoteBreakdown
from .share import CartShare, ShareStatus, ShareResolution
from .sync_report import SyncOutcome, SyncReport

__all__ = [
    # Queue models
    "RecordStatus",
    "ScanRecord",
    "CartItemRecord",
    # Cart models
    "Shop",
    "Product",
    "Offer",
    "CartItem",
    "Cart",
    "CartLine",
    "PricedLine",
    "ShopGroup",
    "CartSnapshot",
    # Shipping models
    "ShippingRule",
    "ShippingQuote",
    "QuoteBreakdown",
    # Share models
    "CartShare",
    "ShareStatus",
    "ShareResolution",
    # Sync models
    "SyncOutcome",
    "SyncReport",
]
