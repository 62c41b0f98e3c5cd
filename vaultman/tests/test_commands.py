"""
Tests for the sweep_expired_stock management command.
"""

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command

from vaultman.models import StockUnit


pytestmark = pytest.mark.django_db


def _run(*args):
    out = StringIO()
    call_command('sweep_expired_stock', *args, stdout=out)
    return out.getvalue()


class TestSweepExpiredStock:

    def test_dry_run_removes_nothing(self, make_unit, expired_unit):
        make_unit()

        output = _run('--dry-run')

        assert '1 item(ns) seria(m) removido(s)' in output
        assert StockUnit.objects.count() == 2

    def test_sweep(self, make_unit, expired_unit):
        keep = make_unit()

        output = _run()

        assert '1 item(ns) removido(s)' in output
        assert list(StockUnit.objects.values_list('pk', flat=True)) == [keep.pk]

    def test_product_option(self, product_id, other_product_id, make_unit, now):
        past = now - timedelta(minutes=5)
        make_unit(expires_at=past)
        make_unit(product=other_product_id, expires_at=past)

        output = _run('--product', str(other_product_id))

        assert '1 item(ns) removido(s)' in output
        assert list(StockUnit.objects.values_list('product_id', flat=True)) == [product_id]
