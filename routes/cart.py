"""
Cart routes.

Handles:
- GET    /cart?userId      - Active cart grouped by shop
- POST   /cart/items       - Add a line to the active cart
- PATCH  /cart/items/<id>  - Change quantity and/or note
- DELETE /cart/items/<id>  - Remove a line
"""

from flask import Blueprint, current_app

from routes.validation import (
    json_body,
    optional_int,
    optional_str,
    require_arg,
    require_int,
    require_str,
    sanitize_text,
)
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

cart_bp = Blueprint("cart", __name__)


@cart_bp.route("/cart", methods=["GET"])
def get_cart():
    """Return the user's active cart, or an empty body when there is none."""
    user_id = require_arg("userId")

    cart_service = current_app.config["CART_SERVICE"]
    snapshot = cart_service.snapshot_for_user(user_id)
    if snapshot is None:
        return {"cart": None, "items": []}

    return snapshot.to_dict()


@cart_bp.route("/cart/items", methods=["POST"])
def add_item():
    body = json_body()
    product_id = require_str(body, "productId")
    quantity = require_int(body, "quantity", minimum=1)
    user_id = require_str(body, "userId")
    selected_offer_id = optional_str(body, "selectedOfferId")

    cart_service = current_app.config["CART_SERVICE"]
    line = cart_service.add_item(user_id, product_id, quantity, selected_offer_id)
    return {"cartItem": line.to_dict()}


@cart_bp.route("/cart/items/<item_id>", methods=["PATCH"])
def update_item(item_id: str):
    """
    Update a line.

    A quantity below 1 removes the line; the response then carries
    ``cartItem: null`` and ``removed: true``.
    """
    body = json_body()
    quantity = optional_int(body, "quantity")
    note = optional_str(body, "note")
    if note is not None:
        note = sanitize_text(note)

    cart_service = current_app.config["CART_SERVICE"]
    line = cart_service.update_item(item_id, quantity=quantity, note=note)
    if line is None:
        return {"cartItem": None, "removed": True}

    return {"cartItem": line.to_dict(), "removed": False}


@cart_bp.route("/cart/items/<item_id>", methods=["DELETE"])
def delete_item(item_id: str):
    cart_service = current_app.config["CART_SERVICE"]
    if not cart_service.remove_item(item_id):
        logger.debug(f"Delete of unknown cart item {item_id[:8]}")
    return {"success": True}
