"""
Concurrent allocation tests.

These tests validate real concurrency behavior (not mocks): every worker
thread gets its own database connection and its own transaction.

They run on the default SQLite test database (writers serialized by
BEGIN IMMEDIATE) and on PostgreSQL when DATABASE_URL is set (advisory
and row locks).
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from asgiref.sync import async_to_sync
from django.db import connections

from vaultman import stock, StockError
from vaultman.models import StockUnit


def _run_concurrently(fn, args_list):
    """Start all calls at once; return results (or raised StockErrors)."""
    barrier = threading.Barrier(len(args_list))

    def worker(args):
        try:
            connections['default'].ensure_connection()
            barrier.wait(timeout=10)
            return fn(*args)
        except StockError as exc:
            return exc
        finally:
            connections['default'].close()

    with ThreadPoolExecutor(max_workers=len(args_list)) as pool:
        return list(pool.map(worker, args_list))


@pytest.mark.django_db(transaction=True)
class TestNoOversell:
    """K units, K+1 buyers."""

    K = 5

    def test_last_units_never_sold_twice(self, product_id, make_unit):
        for _ in range(self.K):
            make_unit()

        results = _run_concurrently(
            stock.allocate,
            [(product_id, f'order-{i}', 1) for i in range(self.K + 1)],
        )

        successes = [r for r in results if isinstance(r, list)]
        failures = [r for r in results if isinstance(r, StockError)]

        assert len(successes) == self.K
        assert len(failures) == 1
        assert failures[0].code == 'INSUFFICIENT_INVENTORY'

        unit_ids = [unit.pk for units in successes for unit in units]
        assert len(unit_ids) == len(set(unit_ids)) == self.K
        assert StockUnit.objects.filter(is_used=True).count() == self.K
        assert StockUnit.objects.values('used_order_id').distinct().count() == self.K

    def test_multi_unit_orders_stay_disjoint(self, product_id, make_unit):
        """3 orders of 2 units over 5 units: two succeed, one gets nothing."""
        for _ in range(5):
            make_unit()

        results = _run_concurrently(
            stock.allocate,
            [(product_id, f'order-{i}', 2) for i in range(3)],
        )

        successes = [r for r in results if isinstance(r, list)]
        assert len(successes) == 2
        unit_ids = [unit.pk for units in successes for unit in units]
        assert len(set(unit_ids)) == 4

        failed = next(r for r in results if isinstance(r, StockError))
        assert failed.code == 'INSUFFICIENT_INVENTORY'
        assert failed.available == 1
        assert StockUnit.objects.filter(is_used=False).count() == 1

    def test_concurrent_release_is_idempotent(self, product_id, make_unit):
        """Retried refunds racing each other free the units exactly once."""
        make_unit()
        make_unit()
        stock.allocate(product_id, 'order-1', 2)

        results = _run_concurrently(stock.release, [('order-1',)] * 3)

        assert sorted(len(r) for r in results) == [0, 0, 2]
        assert StockUnit.objects.filter(is_used=False).count() == 2


@pytest.mark.django_db
class TestAsyncEntryPoints:
    """Async wrappers around the transactional code."""

    def test_aallocate_and_arelease(self, product_id, make_unit):
        unit = make_unit()

        [allocated] = async_to_sync(stock.aallocate)(product_id, 'order-1', 1)
        assert allocated.pk == unit.pk

        released = async_to_sync(stock.arelease)('order-1')
        assert [u.pk for u in released] == [unit.pk]

    def test_async_stats(self, product_id, other_product_id, make_unit):
        make_unit()

        stats = async_to_sync(stock.astats_for)(product_id)
        both = async_to_sync(stock.abatch_stats_for)([product_id, other_product_id])

        assert stats.available == 1
        assert both[other_product_id].total == 0
