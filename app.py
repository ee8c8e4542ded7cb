"""
ScanCart - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration and sets up logging
2. Builds the catalog, cart and share services
3. Builds the device side: offline queue, remote client, sync engine
4. Registers route blueprints
5. Sets up JSON error handlers

ARCHITECTURE:
    Flask request threads
    ├── CartService       (in-memory carts, one lock)
    ├── CartShareIssuer   (share tokens over CartService snapshots)
    └── ScanService       (validate -> resolve remotely or enqueue)

    OfflineQueue -> QueueStorage (JSON file or memory)
    SyncEngine   -> drains the queue through RemoteCartClient on reconnect

Only one process may write a given OFFLINE_QUEUE_PATH.
"""

from __future__ import annotations

import atexit
import logging
import os
from typing import Optional, Union

from flask import Flask
from werkzeug.exceptions import HTTPException

from config import config_for_environment
from logging_config import setup_logging, get_logger
from core.exceptions import NotFoundError, RemoteServiceError, RequestValidationError
from core.remote_client import RemoteCartClient
from core.runtime import ConnectivityProbe, HttpConnectivityProbe, StaticConnectivityProbe
from core.storage import InMemoryQueueStorage, JsonFileQueueStorage
from modules.barcode import ScanDeduplicator
from services.cart_service import Catalog, CartService
from services.offline_queue import OfflineQueue
from services.scan_service import ScanService
from services.share_service import CartShareIssuer, InMemoryShareStore
from services.sync_engine import SyncEngine
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def create_app(
    config_object: Optional[Union[str, type]] = None,
    remote_client=None,
    connectivity: Optional[ConnectivityProbe] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Config class, or its import path; defaults to the
            class selected by FLASK_ENV
        remote_client: Remote operations to use instead of a RemoteCartClient
        connectivity: Connectivity probe; defaults to an HTTP probe when
            CONNECTIVITY_PROBE_URL is set, else a settable static probe

    Returns:
        Configured Flask application
    """
    # Create Flask app
    app = Flask(__name__)
    app.config.from_object(config_object or config_for_environment())

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        app_name="scan_cart",
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting ScanCart in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # CATALOG, CART AND SHARES
    # =========================================================================

    seed_path = app.config.get("CATALOG_SEED_PATH")
    catalog = Catalog.load(seed_path) if seed_path else Catalog()

    cart_service = CartService(catalog)
    app.config["CART_SERVICE"] = cart_service

    share_issuer = CartShareIssuer(
        InMemoryShareStore(),
        cart_service,
        public_url=app.config["APP_PUBLIC_URL"],
        default_expires_in_ms=app.config["SHARE_DEFAULT_EXPIRES_MS"],
    )
    app.config["SHARE_ISSUER"] = share_issuer

    # =========================================================================
    # DEVICE SIDE: OFFLINE QUEUE AND SYNC
    # =========================================================================

    queue_path = app.config.get("OFFLINE_QUEUE_PATH")
    if queue_path:
        storage = JsonFileQueueStorage(queue_path)
        logger.info(f"Offline queue stored at {queue_path}")
    else:
        storage = InMemoryQueueStorage()
        logger.info("Offline queue kept in memory")

    offline_queue = OfflineQueue(
        storage, retention_seconds=app.config["QUEUE_RETENTION_SECONDS"]
    )
    app.config["OFFLINE_QUEUE"] = offline_queue

    if connectivity is None:
        probe_url = app.config.get("CONNECTIVITY_PROBE_URL")
        if probe_url:
            connectivity = HttpConnectivityProbe(probe_url)
            logger.info(f"Connectivity probed at {probe_url}/health")
        else:
            connectivity = StaticConnectivityProbe(online=True)
    app.config["CONNECTIVITY"] = connectivity

    owns_remote = remote_client is None
    if owns_remote:
        remote_client = RemoteCartClient(
            app.config["REMOTE_API_BASE_URL"],
            timeout_seconds=app.config["REMOTE_API_TIMEOUT_SECONDS"],
            user_id=app.config["REMOTE_USER_ID"],
        )
    app.config["REMOTE_CLIENT"] = remote_client

    app.config["SYNC_ENGINE"] = SyncEngine(offline_queue, remote_client, connectivity)
    app.config["SCAN_SERVICE"] = ScanService(
        offline_queue,
        remote_client,
        connectivity,
        deduplicator=ScanDeduplicator(app.config["SCAN_DEDUP_WINDOW_SECONDS"]),
    )

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        if owns_remote:
            remote_client.close()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestValidationError)
    def handle_validation_error(e):
        logger.info(f"Rejected request: {e}")
        return {"error": e.message, "details": e.details}, 400

    @app.errorhandler(NotFoundError)
    def handle_missing_entity(e):
        return {"error": e.message, "details": e.details}, 404

    @app.errorhandler(RemoteServiceError)
    def handle_remote_error(e):
        logger.warning(f"Remote service error: {e}")
        return {"error": e.message, "details": e.details}, 502

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return {"error": e.description}, e.code

    @app.errorhandler(Exception)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"error": "Internal server error"}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
