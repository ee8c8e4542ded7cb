"""
Shipping data models.

ShippingRule is immutable reference data; ShippingQuote is the result of
one calculation. All costs are integer minor units (JPY).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Any


@dataclass(frozen=True)
class ShippingRule:
    """Cost rule for one destination country."""

    country_code: str
    base_cost: int
    """Flat charge; also the minimum quote for this country."""

    per_kg_cost: int
    """Charge per kilogram of total shipment weight."""

    estimated_days: int
    """Typical delivery time."""


@dataclass(frozen=True)
class QuoteBreakdown:
    base_cost: int
    weight_cost: int
    total_weight_kg: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_cost": self.base_cost,
            "weight_cost": self.weight_cost,
            "total_weight_kg": self.total_weight_kg,
        }


@dataclass(frozen=True)
class ShippingQuote:
    """Shipping estimate for a shipment of a given weight."""

    country_code: str
    total_weight_g: float
    shipping_cost: int
    estimated_days: int
    breakdown: QuoteBreakdown

    def to_dict(self) -> Dict[str, Any]:
        """Response body of POST /ship/quote."""
        return {
            "total_weight_g": self.total_weight_g,
            "shipping_cost_jpy": self.shipping_cost,
            "estimated_days": self.estimated_days,
            "breakdown": self.breakdown.to_dict(),
        }
