"""
Cart share routes.

Handles:
- POST /cart/share         - Issue a share link for the user's active cart
- GET  /cart/share?token   - Resolve a link: 200 live cart, 404, or 410 expired
"""

from flask import Blueprint, current_app

from models.share import ShareStatus
from routes.validation import json_body, optional_int, require_arg, require_str
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

share_bp = Blueprint("share", __name__)


@share_bp.route("/cart/share", methods=["POST"])
def create_share():
    body = json_body()
    user_id = require_str(body, "userId")
    expires_in = optional_int(body, "expiresIn")

    cart_service = current_app.config["CART_SERVICE"]
    issuer = current_app.config["SHARE_ISSUER"]

    cart = cart_service.get_active_cart(user_id)
    if cart is None:
        return {"error": "Cart not found"}, 404

    share = issuer.create_share(cart.id, created_by=user_id, expires_in_ms=expires_in)
    return {
        "shareLink": {
            "token": share.token,
            "url": issuer.share_url(share.token),
            "expiresAt": share.expires_at.isoformat(),
        }
    }


@share_bp.route("/cart/share", methods=["GET"])
def resolve_share():
    token = require_arg("token")

    issuer = current_app.config["SHARE_ISSUER"]
    resolution = issuer.resolve_share(token)

    if resolution.status is ShareStatus.EXPIRED:
        return {"error": "Share link has expired"}, 410

    if resolution.status is ShareStatus.NOT_FOUND:
        if resolution.share is not None:
            return {"error": "Cart not found"}, 404
        return {"error": "Share link not found"}, 404

    body = resolution.snapshot.to_dict()
    body["shareInfo"] = {
        "token": resolution.share.token,
        "expiresAt": resolution.share.expires_at.isoformat(),
        "createdAt": resolution.share.created_at.isoformat(),
    }
    return body
