"""
Service routes.

Handles:
- /health - Health check endpoint
"""

from flask import Blueprint, current_app

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    # Offline queue
    queue = current_app.config.get("OFFLINE_QUEUE")
    if queue:
        counts = queue.counts()
        health_status["checks"]["queue"] = {
            "pending": sum(c["pending"] for c in counts.values()),
            "failed": sum(c["failed"] for c in counts.values()),
        }
    else:
        health_status["checks"]["queue"] = "not configured"
        health_status["status"] = "degraded"

    # Connectivity and sync
    connectivity = current_app.config.get("CONNECTIVITY")
    if connectivity:
        health_status["checks"]["online"] = connectivity.is_online()

    sync_engine = current_app.config.get("SYNC_ENGINE")
    if sync_engine:
        health_status["checks"]["sync"] = "draining" if sync_engine.is_draining else "idle"

    # Catalog
    cart_service = current_app.config.get("CART_SERVICE")
    if cart_service:
        health_status["checks"]["catalog_products"] = len(cart_service.catalog)
    else:
        health_status["status"] = "degraded"

    return health_status
