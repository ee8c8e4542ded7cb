"""Deterministic international shipping quotes."""

from __future__ import annotations

from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from core.exceptions import RequestValidationError, UnsupportedDestinationError
from logging_config import get_logger
from models.shipping import QuoteBreakdown, ShippingQuote, ShippingRule


logger = get_logger(__name__)


# Costs in JPY. Keys are the codes the destination picker sends ("UK", not "GB").
SHIPPING_RULES: Dict[str, ShippingRule] = {
    rule.country_code: rule
    for rule in (
        ShippingRule("US", base_cost=2000, per_kg_cost=500, estimated_days=7),
        ShippingRule("CA", base_cost=2500, per_kg_cost=600, estimated_days=8),
        ShippingRule("UK", base_cost=3000, per_kg_cost=700, estimated_days=6),
        ShippingRule("DE", base_cost=2800, per_kg_cost=650, estimated_days=7),
        ShippingRule("FR", base_cost=2900, per_kg_cost=670, estimated_days=7),
        ShippingRule("AU", base_cost=3500, per_kg_cost=800, estimated_days=9),
        ShippingRule("JP", base_cost=1000, per_kg_cost=200, estimated_days=2),
    )
}

COUNTRY_NAMES = {
    "US": "United States",
    "CA": "Canada",
    "UK": "United Kingdom",
    "DE": "Germany",
    "FR": "France",
    "AU": "Australia",
    "JP": "Japan",
}


def available_countries() -> List[Dict[str, str]]:
    """Supported destinations in table order, for the destination picker."""
    return [
        {"code": code, "name": COUNTRY_NAMES.get(code, code)}
        for code in SHIPPING_RULES
    ]


def round_half_up(value: Decimal) -> int:
    """Round to a whole minor unit, halves away from zero.

    Quantizes under a context wide enough for every integer digit of
    ``value``; the default 28-digit context rejects larger results.
    """
    precision = max(28, value.adjusted() + 2)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP, context=Context(prec=precision)))


def get_rule(country_code: str, rules: Optional[Dict[str, ShippingRule]] = None) -> ShippingRule:
    table = SHIPPING_RULES if rules is None else rules
    rule = table.get(country_code)
    if rule is None:
        raise UnsupportedDestinationError(country_code)
    return rule


def calculate_shipping_quote(
    country_code: str,
    total_weight_g: float,
    rules: Optional[Dict[str, ShippingRule]] = None,
) -> ShippingQuote:
    """
    Quote shipping for a shipment of ``total_weight_g`` grams.

    cost = max(base + round(kg * per_kg), base)

    The floor at ``base`` is explicit so a rule with a negative weight term
    can never quote below its base cost.

    Raises:
        UnsupportedDestinationError: No rule for ``country_code``
        RequestValidationError: Negative or non-finite weight
    """
    # Floats go through str so 0.1 g stays 0.1 rather than its binary expansion
    weight_g = Decimal(total_weight_g) if isinstance(total_weight_g, int) else Decimal(str(total_weight_g))
    if not weight_g.is_finite():
        raise RequestValidationError("totalWeightG must be a finite number", field="totalWeightG")
    if weight_g < 0:
        raise RequestValidationError("totalWeightG must be >= 0", field="totalWeightG")

    rule = get_rule(country_code, rules)

    weight_kg = weight_g / Decimal(1000)
    weight_cost = round_half_up(weight_kg * rule.per_kg_cost)

    raw_cost = rule.base_cost + weight_cost
    final_cost = max(raw_cost, rule.base_cost)

    logger.debug(
        f"Quote {country_code}: {total_weight_g} g -> base={rule.base_cost} "
        f"weight={weight_cost} total={final_cost}"
    )

    return ShippingQuote(
        country_code=country_code,
        total_weight_g=total_weight_g,
        shipping_cost=final_cost,
        estimated_days=rule.estimated_days,
        breakdown=QuoteBreakdown(
            base_cost=rule.base_cost,
            weight_cost=weight_cost,
            total_weight_kg=float(weight_kg),
        ),
    )
