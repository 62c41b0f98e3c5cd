"""
Tests for StockError.
"""

from datetime import datetime, timezone

import pytest

from vaultman import StockError


class TestStockError:

    def test_default_message(self):
        exc = StockError('INSUFFICIENT_INVENTORY', available=1, requested=2)

        assert exc.message == 'Estoque insuficiente para o pedido'
        assert str(exc) == '[INSUFFICIENT_INVENTORY] Estoque insuficiente para o pedido'
        assert exc.available == 1
        assert exc.requested == 2

    def test_custom_message_and_unknown_code(self):
        assert StockError('INVALID_ORDER', 'Pedido cancelado').message == 'Pedido cancelado'
        assert StockError('SOMETHING_ELSE').message == 'SOMETHING_ELSE'

    def test_shortcuts_default_to_zero(self):
        exc = StockError('EMPTY_IMPORT')

        assert exc.available == 0
        assert exc.requested == 0

    @pytest.mark.parametrize('code, status, business', [
        ('INSUFFICIENT_INVENTORY', 409, True),
        ('CANNOT_DELETE_ALLOCATED', 409, True),
        ('EMPTY_IMPORT', 400, True),
        ('UNIT_NOT_FOUND', 404, True),
        ('TRANSIENT_STORE_ERROR', 503, False),
        ('CONCURRENT_MODIFICATION', 503, False),
        ('CORRUPTED_UNIT', 500, False),
        ('SOMETHING_ELSE', 500, False),
    ])
    def test_http_status(self, code, status, business):
        exc = StockError(code)

        assert exc.http_status == status
        assert exc.is_business is business

    def test_as_dict(self):
        when = datetime(2024, 12, 24, 10, 0, tzinfo=timezone.utc)
        exc = StockError('CORRUPTED_UNIT', unit_ids=[1, 2], seen_at=when)

        assert exc.as_dict() == {
            'code': 'CORRUPTED_UNIT',
            'message': 'Item de estoque em estado inconsistente',
            'data': {'unit_ids': [1, 2], 'seen_at': '2024-12-24T10:00:00+00:00'},
        }
