"""
Tests for StockQuery and build().
"""

from datetime import timedelta

import pytest

from vaultman.models import ALLOCATION_ORDER
from vaultman.services.query import Expiry, StockQuery, build


pytestmark = pytest.mark.django_db


class TestStockQuery:

    def test_product_ids_become_tuple(self):
        assert StockQuery(product_ids=[1, 2]).product_ids == (1, 2)
        assert StockQuery(product_ids={7}).product_ids == (7,)

    def test_negative_limit(self):
        with pytest.raises(ValueError):
            StockQuery(limit=-1)

    def test_replace_keeps_original(self):
        base = StockQuery.for_product(1, used=False)
        derived = base.replace(used=True)

        assert base.used is False
        assert derived.used is True
        assert derived.product_ids == (1,)

    def test_hashable(self):
        assert StockQuery.for_product(1) == StockQuery(product_ids=(1,))
        assert len({StockQuery.for_product(1), StockQuery(product_ids=[1])}) == 1


class TestBuild:

    def test_empty_product_list_selects_nothing(self, make_unit, django_assert_num_queries):
        make_unit()

        with django_assert_num_queries(0):
            assert list(build(StockQuery(product_ids=()))) == []

    def test_none_means_all_products(self, make_unit, other_product_id):
        make_unit()
        make_unit(product=other_product_id)

        assert build(StockQuery()).count() == 2

    def test_eligible_query(self, product_id, make_unit, allocated_unit, expired_unit, now):
        low = make_unit(priority=1)
        high = make_unit(priority=3)
        make_unit(priority=2, expires_at=now - timedelta(seconds=1))

        qs = build(StockQuery.for_product(
            product_id, used=False, expiry=Expiry.VALID, order_by=ALLOCATION_ORDER,
            limit=5, now=now,
        ))

        assert list(qs) == [high, low]

    def test_limit(self, make_unit):
        for _ in range(3):
            make_unit()

        assert len(build(StockQuery(limit=2))) == 2
        assert list(build(StockQuery(limit=0))) == []

    def test_text_filters(self, make_unit):
        a = make_unit(batch_name='Natal', created_by='ana')
        b = make_unit(batch_name='pre-natal', created_by='bia')

        assert list(build(StockQuery(batch_name='Natal'))) == [a]
        assert set(build(StockQuery(batch_contains='natal'))) == {a, b}
        assert list(build(StockQuery(created_by='bia'))) == [b]

    def test_order_and_usage_window(self, make_unit, now):
        make_unit(is_used=True, used_order_id='o1', used_at=now - timedelta(days=3))
        recent = make_unit(is_used=True, used_order_id='o2', used_at=now)

        assert list(build(StockQuery(order_id='o2'))) == [recent]
        assert list(build(StockQuery(used_from=now - timedelta(days=1)))) == [recent]
        assert build(StockQuery(used_until=now - timedelta(days=1))).count() == 1
