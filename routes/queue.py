"""
Device queue routes.

Handles:
- GET    /queue                       - Both logs with per-status counts
- POST   /queue/scans                 - Enqueue a scan directly
- POST   /queue/cart-items            - Enqueue an add-to-cart directly
- POST   /queue/<log>/<id>/retry      - Re-enqueue a FAILED record
- DELETE /queue/<log>/<id>            - Drop a record
- POST   /queue/prune                 - Remove old SYNCED/FAILED records
- POST   /sync                        - Run one drain now
- POST   /connectivity                - Report online/offline; drains on reconnect
"""

from flask import Blueprint, current_app, request

from core.exceptions import BarcodeValidationError, NotFoundError, RequestValidationError
from core.storage import CART_ITEMS, SCANS
from modules.barcode import validate_barcode
from routes.validation import json_body, optional_int, require_int, require_str
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

queue_bp = Blueprint("queue", __name__)

# URL segment -> storage collection
LOG_NAMES = {
    "scans": SCANS,
    "cart-items": CART_ITEMS,
    "cart_items": CART_ITEMS,
}


def _log_for(segment: str) -> str:
    try:
        return LOG_NAMES[segment]
    except KeyError:
        raise NotFoundError(f"Unknown queue log: {segment}") from None


@queue_bp.route("/queue", methods=["GET"])
def list_queue():
    queue = current_app.config["OFFLINE_QUEUE"]
    return {
        "scans": [r.to_dict() for r in queue.list_scans()],
        "cartItems": [r.to_dict() for r in queue.list_cart_items()],
        "counts": queue.counts(),
    }


@queue_bp.route("/queue/scans", methods=["POST"])
def enqueue_scan():
    body = json_body()
    raw_barcode = require_str(body, "barcode")

    validation = validate_barcode(raw_barcode)
    if not validation.is_valid:
        raise BarcodeValidationError(
            validation.barcode, validation.symbology.value, validation.error or ""
        )

    queue = current_app.config["OFFLINE_QUEUE"]
    record_id = queue.enqueue_scan(validation.barcode)
    return {"id": record_id}, 201


@queue_bp.route("/queue/cart-items", methods=["POST"])
def enqueue_cart_item():
    body = json_body()
    product_id = require_str(body, "productId")
    quantity = require_int(body, "quantity", minimum=1)

    queue = current_app.config["OFFLINE_QUEUE"]
    record_id = queue.enqueue_cart_item(product_id, quantity)
    return {"id": record_id}, 201


@queue_bp.route("/queue/<log>/<record_id>/retry", methods=["POST"])
def retry_record(log: str, record_id: str):
    """Retry a FAILED record; anything else is a 409."""
    collection = _log_for(log)
    queue = current_app.config["OFFLINE_QUEUE"]

    if queue.get(collection, record_id) is None:
        raise NotFoundError(f"Queue record not found: {record_id}", {"log": collection})

    new_id = queue.retry(collection, record_id)
    if new_id is None:
        return {"error": "Only failed records can be retried"}, 409

    return {"id": new_id}, 201


@queue_bp.route("/queue/<log>/<record_id>", methods=["DELETE"])
def remove_record(log: str, record_id: str):
    collection = _log_for(log)
    queue = current_app.config["OFFLINE_QUEUE"]
    return {"removed": queue.remove(collection, record_id)}


@queue_bp.route("/queue/prune", methods=["POST"])
def prune_queue():
    """Body is optional; ``olderThanSeconds`` overrides the configured retention."""
    body = json_body() if request.get_data() else {}
    older_than = optional_int(body, "olderThanSeconds")
    if older_than is not None and older_than < 0:
        raise RequestValidationError("olderThanSeconds must be >= 0", field="olderThanSeconds")

    queue = current_app.config["OFFLINE_QUEUE"]
    return {"removed": queue.prune(older_than)}


@queue_bp.route("/sync", methods=["POST"])
def sync_now():
    sync_engine = current_app.config["SYNC_ENGINE"]
    report = sync_engine.drain()
    return report.to_dict()


@queue_bp.route("/connectivity", methods=["POST"])
def set_connectivity():
    """
    Report a connectivity change from the device.

    Only the offline -> online edge triggers a drain; its report is
    returned under ``sync``.
    """
    body = json_body()
    online = body.get("online")
    if not isinstance(online, bool):
        raise RequestValidationError("online must be a boolean", field="online")

    probe = current_app.config["CONNECTIVITY"]
    if hasattr(probe, "set_online"):
        probe.set_online(online)

    sync_engine = current_app.config["SYNC_ENGINE"]
    report = sync_engine.notify_connectivity(online)
    return {"online": online, "sync": report.to_dict() if report else None}
