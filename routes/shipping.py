"""
Shipping routes.

Handles:
- POST /ship/quote      - Quote by explicit weight, or by a user's cart weight
- GET  /ship/countries  - Supported destinations
"""

from flask import Blueprint, current_app

from core.exceptions import RequestValidationError
from modules.cart_aggregator import total_weight_grams
from modules.shipping import available_countries, calculate_shipping_quote
from routes.validation import json_body, require_number, require_str
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

shipping_bp = Blueprint("shipping", __name__)


@shipping_bp.route("/ship/quote", methods=["POST"])
def quote():
    """
    Shipping quote.

    Body is either ``{country, totalWeightG}`` or ``{country, userId}``; the
    second form weighs the user's active cart (weight x quantity per line).
    """
    body = json_body()
    country = require_str(body, "country")

    if "totalWeightG" in body:
        total_weight_g = require_number(body, "totalWeightG", minimum=0)
    elif "userId" in body:
        user_id = require_str(body, "userId")
        cart_service = current_app.config["CART_SERVICE"]
        snapshot = cart_service.snapshot_for_user(user_id)
        if snapshot is None or not snapshot.lines:
            raise RequestValidationError("Cart is empty", field="userId")
        total_weight_g = total_weight_grams(p.line for p in snapshot.lines)
    else:
        raise RequestValidationError("totalWeightG or userId is required", field="totalWeightG")

    result = calculate_shipping_quote(country, total_weight_g)
    return result.to_dict()


@shipping_bp.route("/ship/countries", methods=["GET"])
def countries():
    return {"countries": available_countries()}
