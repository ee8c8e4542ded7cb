"""
Shared fixtures for the ScanCart test suite.

Clock, ids and the catalog are pinned so queue records, share tokens and
cart totals are predictable.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.storage import InMemoryQueueStorage
from services.cart_service import Catalog


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, **kwargs) -> None:
        self.now = self.now + timedelta(seconds=seconds, **kwargs)


class SequentialIds:
    """Predictable id generator: id-0001, id-0002, ..."""

    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count:04d}"


# Valid EAN-13 codes (check digits verified by hand)
VALID_EAN13 = "4901234567894"
SECOND_VALID_EAN13 = "4006381333931"

CATALOG_SEED = {
    "shops": [
        {"id": "shop-1", "name": "Don Quijote", "address": "Shibuya"},
        {"id": "shop-2", "name": "Bic Camera", "address": "Shinjuku"},
        # Different shop, same display name as shop-1
        {"id": "shop-3", "name": "Don Quijote", "address": "Akihabara"},
    ],
    "products": [
        {"id": "prod-1", "title": "Matcha KitKat", "brand": "Nestle", "weight_g": 150},
        {"id": "prod-2", "title": "Pocky", "brand": "Glico", "weight_g": 80},
        {"id": "prod-3", "title": "Mystery Box", "weight_g": None},
    ],
    "offers": [
        {"id": "offer-1a", "product_id": "prod-1", "shop_id": "shop-1", "price_jpy": 500},
        {"id": "offer-1b", "product_id": "prod-1", "shop_id": "shop-2", "price_jpy": 450},
        {"id": "offer-2a", "product_id": "prod-2", "shop_id": "shop-3", "price_jpy": 200},
        {"id": "offer-3a", "product_id": "prod-3", "shop_id": "shop-2", "price_jpy": None},
    ],
    "barcodes": [
        {"code_value": VALID_EAN13, "product_id": "prod-1"},
        {"code_value": SECOND_VALID_EAN13, "product_id": "prod-2"},
    ],
}


# Fixtures

@pytest.fixture
def clock():
    """Clock pinned to 2026-01-15 09:00 UTC."""
    return FakeClock(datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def storage():
    return InMemoryQueueStorage()


@pytest.fixture
def catalog():
    return Catalog.from_dict(CATALOG_SEED)
