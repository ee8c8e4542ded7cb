"""
Configuration for ScanCart.

The offline queue, remote service and share links are all configured from
the environment. Values are read once when this module is imported.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent

SEVEN_DAYS_SECONDS = 7 * 24 * 60 * 60


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # ==========================================================================
    # Offline queue
    # ==========================================================================
    # OFFLINE_QUEUE_PATH: JSON file holding the pending scan and cart-item logs.
    #   An empty value keeps the queue in memory (lost on restart).
    #
    # QUEUE_RETENTION_SECONDS: synced/failed records older than this are
    #   removed by OfflineQueue.prune(). Pending records are never pruned.
    # ==========================================================================
    OFFLINE_QUEUE_PATH = os.environ.get(
        "OFFLINE_QUEUE_PATH", str(BASE_DIR / "instance" / "offline_queue.json")
    )
    QUEUE_RETENTION_SECONDS = int(
        os.environ.get("QUEUE_RETENTION_SECONDS", str(SEVEN_DAYS_SECONDS))
    )

    # Remote catalog/cart service used when draining the queue
    REMOTE_API_BASE_URL = os.environ.get(
        "REMOTE_API_BASE_URL", "http://localhost:5000"
    )
    REMOTE_API_TIMEOUT_SECONDS = float(
        os.environ.get("REMOTE_API_TIMEOUT_SECONDS", "10")
    )
    REMOTE_USER_ID = os.environ.get("REMOTE_USER_ID", "")

    # When set, connectivity is probed with GET <url>/health instead of being
    # reported by the device through POST /connectivity
    CONNECTIVITY_PROBE_URL = os.environ.get("CONNECTIVITY_PROBE_URL", "")

    # Share links
    APP_PUBLIC_URL = os.environ.get("APP_PUBLIC_URL", "http://localhost:3000")
    SHARE_DEFAULT_EXPIRES_MS = int(
        os.environ.get("SHARE_DEFAULT_EXPIRES_MS", str(SEVEN_DAYS_SECONDS * 1000))
    )

    # Repeated reads of the same code inside this window are ignored
    SCAN_DEDUP_WINDOW_SECONDS = float(
        os.environ.get("SCAN_DEDUP_WINDOW_SECONDS", "2.0")
    )

    # Optional JSON seed for the in-memory catalog (products, shops, offers, barcodes)
    CATALOG_SEED_PATH = os.environ.get("CATALOG_SEED_PATH", "")


class ProductionConfig(Config):
    """Production configuration (rotating log files, no debug)."""
    ENVIRONMENT = "production"
    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration."""
    ENVIRONMENT = "development"
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    ENVIRONMENT = "testing"
    DEBUG = False
    TESTING = True
    OFFLINE_QUEUE_PATH = ""
    CATALOG_SEED_PATH = ""
    REMOTE_API_BASE_URL = "http://remote.test"
    CONNECTIVITY_PROBE_URL = ""


CONFIG_BY_ENVIRONMENT = {
    "production": ProductionConfig,
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}


def config_for_environment(environment: str = None) -> type:
    """Config class for ``environment`` (default: FLASK_ENV), falling back to Config."""
    if environment is None:
        environment = os.environ.get("FLASK_ENV", "development")
    return CONFIG_BY_ENVIRONMENT.get(environment.strip().lower(), Config)
