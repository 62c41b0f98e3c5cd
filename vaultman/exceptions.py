"""
Exceptions for Vaultman.

All errors are StockError with a structured code for programmatic handling.
"""

from typing import Any

from django.utils.translation import gettext_lazy as _


class StockError(Exception):
    """
    Structured exception for stock operations.

    Usage:
        try:
            stock.allocate(product_id, order_id, 2)
        except StockError as e:
            if e.code == 'INSUFFICIENT_INVENTORY':
                print(f"Só tem {e.available} disponível")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'INSUFFICIENT_INVENTORY': _('Estoque insuficiente para o pedido'),
        'EMPTY_IMPORT': _('Nenhuma linha válida para importar'),
        'CANNOT_DELETE_ALLOCATED': _('Item já entregue a um pedido não pode ser removido'),
        'TRANSIENT_STORE_ERROR': _('Falha temporária no banco de dados'),
        'CONCURRENT_MODIFICATION': _('Modificação concorrente detectada'),
        'CORRUPTED_UNIT': _('Item de estoque em estado inconsistente'),
        'INVALID_QUANTITY': _('Quantidade inválida (deve ser positiva)'),
        'INVALID_ORDER': _('Pedido inválido'),
        'INVALID_PRIORITY': _('Prioridade inválida'),
        'INVALID_BATCH': _('Nome de lote inválido'),
        'UNIT_NOT_FOUND': _('Item de estoque não encontrado'),
        'PRODUCT_NOT_FOUND': _('Produto não encontrado'),
    }

    # Codes the API layer maps to 4xx responses; anything else is a 5xx
    _client_errors = {
        'INSUFFICIENT_INVENTORY': 409,
        'CANNOT_DELETE_ALLOCATED': 409,
        'EMPTY_IMPORT': 400,
        'INVALID_QUANTITY': 400,
        'INVALID_ORDER': 400,
        'INVALID_PRIORITY': 400,
        'INVALID_BATCH': 400,
        'UNIT_NOT_FOUND': 404,
        'PRODUCT_NOT_FOUND': 404,
    }

    _server_errors = {
        'TRANSIENT_STORE_ERROR': 503,
        'CONCURRENT_MODIFICATION': 503,
        'CORRUPTED_UNIT': 500,
    }

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = str(message or self._default_messages.get(code, code))
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    @property
    def is_business(self) -> bool:
        """Expected condition the caller should report, not retry."""
        return self.code in self._client_errors

    @property
    def http_status(self) -> int:
        if self.code in self._client_errors:
            return self._client_errors[self.code]
        return self._server_errors.get(self.code, 500)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: v.isoformat() if hasattr(v, 'isoformat') else v
                for k, v in self.data.items()
            }
        }
