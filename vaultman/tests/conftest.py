"""
Pytest fixtures for Vaultman tests.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from vaultman.adapters import reset_catalog
from vaultman.models import StockUnit


@pytest.fixture
def now():
    """Fixed reference time for the test."""
    return timezone.now()


@pytest.fixture
def product_id():
    """Id of the product under test (catalog lives outside Vaultman)."""
    return 101


@pytest.fixture
def other_product_id():
    """A second product, to check isolation."""
    return 202


@pytest.fixture
def make_unit(db, product_id, now):
    """
    Create a stock unit directly.

    created_at defaults to `now + age` so tests can state FIFO order
    explicitly: make_unit(age=-60) is one minute older than make_unit().
    """
    counter = {'n': 0}

    def _make(content=None, product=None, priority=0, age=0, expires_at=None,
              batch_name='lote-teste', **fields):
        counter['n'] += 1
        return StockUnit.objects.create(
            product_id=product or product_id,
            content=content or f"CODE-{counter['n']:04d}",
            batch_name=batch_name,
            priority=priority,
            created_at=now + timedelta(seconds=age),
            expires_at=expires_at,
            **fields,
        )

    return _make


@pytest.fixture
def allocated_unit(make_unit, now):
    """A unit already delivered to order 'order-antigo'."""
    return make_unit(is_used=True, used_order_id='order-antigo', used_at=now)


@pytest.fixture
def expired_unit(make_unit, now):
    """An unused unit whose expiry passed an hour ago."""
    return make_unit(expires_at=now - timedelta(hours=1))


@pytest.fixture
def catalog(settings):
    """Enable product validation against the test catalog."""
    settings.VAULTMAN = {
        **settings.VAULTMAN,
        'CATALOG_BACKEND': 'vaultman.tests.catalogs.FixedCatalog',
        'VALIDATE_PRODUCTS': True,
    }
    reset_catalog()
    yield
    reset_catalog()
