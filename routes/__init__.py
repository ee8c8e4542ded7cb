"""
Flask route blueprints for ScanCart.

This module contains all route handlers organized by functionality:
- scan: Barcode resolution and the device scan flow
- cart: Cart view and line mutations
- share: Share link issue and lookup
- shipping: Shipping quotes and destinations
- queue: Offline queue inspection, retry, prune and sync
- api: Health check

Each blueprint is registered with the Flask app in create_app().
"""

from .scan import scan_bp
from .cart import cart_bp
from .share import share_bp
from .shipping import shipping_bp
from .queue import queue_bp
from .api import api_bp

__all__ = [
    "scan_bp",
    "cart_bp",
    "share_bp",
    "shipping_bp",
    "queue_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(scan_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(share_bp)
    app.register_blueprint(shipping_bp)
    app.register_blueprint(queue_bp)
    app.register_blueprint(api_bp)
