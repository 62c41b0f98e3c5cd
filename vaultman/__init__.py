"""
Django Vaultman — Estoque de produtos digitais.

Reserva códigos, links e licenças para pedidos sem nunca entregar o mesmo
item duas vezes.

Uso:
    from vaultman import stock, StockError

    stock.import_text(7, "AAAA-1111\\nBBBB-2222", batch_name='natal')
    stock.allocate(7, 'order-1', 1)   # [<StockUnit AAAA-1111>]
    stock.release('order-1')          # estorno
    stock.stats_for(7).available      # 2
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'stock':
        from vaultman.service import Stock
        return Stock
    elif name == 'StockError':
        from vaultman.exceptions import StockError
        return StockError
    elif name == 'StockUnit':
        from vaultman.models.unit import StockUnit
        return StockUnit
    elif name == 'UnitStats':
        from vaultman.services.stats import UnitStats
        return UnitStats
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'stock',
    'StockError',
    'StockUnit',
    'UnitStats',
]

__version__ = '0.1.0'
