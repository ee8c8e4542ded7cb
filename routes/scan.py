"""
Scan routes.

Handles:
- POST /scan/resolve       - Catalog lookup for a barcode (service side)
- POST /device/scan        - Device scan flow: validate, resolve or queue
- POST /device/cart-items  - Device add-to-cart: remote add or queue
"""

from flask import Blueprint, current_app

from core.exceptions import BarcodeValidationError
from modules.barcode import validate_barcode
from routes.validation import json_body, require_int, require_str
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

scan_bp = Blueprint("scan", __name__)


@scan_bp.route("/scan/resolve", methods=["POST"])
def resolve():
    """
    Resolve a barcode against the catalog.

    A code the catalog does not know is answered with ``{"product": null}``
    and status 200; only a malformed body or code is a 400.
    """
    body = json_body()
    raw_barcode = require_str(body, "rawBarcode")

    validation = validate_barcode(raw_barcode)
    if not validation.is_valid:
        raise BarcodeValidationError(
            validation.barcode, validation.symbology.value, validation.error or ""
        )

    catalog = current_app.config["CART_SERVICE"].catalog
    product = catalog.resolve_barcode(validation.barcode)

    logger.info(f"Resolve {validation.barcode}: {'found' if product else 'not found'}")
    return {"product": product, "validation": validation.to_dict()}


@scan_bp.route("/device/scan", methods=["POST"])
def device_scan():
    """Run one decoded read through the offline-aware scan flow."""
    body = json_body()
    raw_barcode = require_str(body, "rawBarcode")

    scan_service = current_app.config["SCAN_SERVICE"]
    outcome = scan_service.handle_scan(raw_barcode)
    return outcome.to_dict(), 202 if outcome.queued else 200


@scan_bp.route("/device/cart-items", methods=["POST"])
def device_add_to_cart():
    """Add to the remote cart, or queue the add while offline."""
    body = json_body()
    product_id = require_str(body, "productId")
    quantity = require_int(body, "quantity", minimum=1)

    scan_service = current_app.config["SCAN_SERVICE"]
    outcome = scan_service.add_to_cart(product_id, quantity)
    return outcome.to_dict(), 202 if outcome.queued else 200
