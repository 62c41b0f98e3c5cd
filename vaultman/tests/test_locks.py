"""
Tests for the per-product allocation lock.
"""

import pytest
from django.db import connection, transaction

from vaultman.services.locks import key_to_int64, lock_product, product_lock_key


class TestLockKeys:

    def test_stable(self):
        assert key_to_int64(product_lock_key(7)) == key_to_int64("vaultman:stock:7")

    def test_distinct_per_product(self):
        assert key_to_int64(product_lock_key(7)) != key_to_int64(product_lock_key(8))

    @pytest.mark.parametrize('product_id', [0, 1, 42, 10**9])
    def test_fits_bigint(self, product_id):
        value = key_to_int64(product_lock_key(product_id))

        assert -2**63 <= value < 2**63


@pytest.mark.django_db
class TestLockProduct:

    def test_inside_transaction(self):
        with transaction.atomic():
            lock_product(101)
            lock_product(101)  # re-entrant within one transaction

        assert connection.vendor in {'sqlite', 'postgresql'}
