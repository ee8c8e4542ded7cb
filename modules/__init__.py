"""Pure helper modules for ScanCart: barcode checks, cart aggregation and shipping."""

__all__ = [
    "barcode",
    "cart_aggregator",
    "shipping",
]
