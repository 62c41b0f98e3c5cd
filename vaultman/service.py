"""
Stock Service — The single public interface for all stock operations.

Usage:
    from vaultman import stock, StockError

    stock.import_text(7, pasted_codes, batch_name='natal', created_by='ana')
    units = stock.allocate(7, 'order-123', 2)
    stock.release('order-123')
    stock.stats_for(7).available
"""

from asgiref.sync import sync_to_async

from vaultman.services.allocation import StockAllocation
from vaultman.services.imports import StockImports
from vaultman.services.queries import StockQueries
from vaultman.services.stats import StockStats, UnitStats


class Stock(StockQueries, StockStats, StockAllocation, StockImports):
    """
    Single interface for all stock operations.

    Parameter convention: (product_id, order_id, quantity)

    IMPORTANT: allocate() and release() are the only methods that change
    allocation state. See each method's docstring.
    """

    # ══════════════════════════════════════════════════════════════
    # ASYNC ENTRY POINTS
    # ══════════════════════════════════════════════════════════════

    # The transaction stays on one thread; the event loop only awaits it.

    @classmethod
    async def aallocate(cls, product_id, order_id, quantity=1):
        return await sync_to_async(cls.allocate)(product_id, order_id, quantity)

    @classmethod
    async def arelease(cls, order_id):
        return await sync_to_async(cls.release)(order_id)

    @classmethod
    async def astats_for(cls, product_id) -> UnitStats:
        return await sync_to_async(cls.stats_for)(product_id)

    @classmethod
    async def abatch_stats_for(cls, product_ids) -> dict[int, UnitStats]:
        return await sync_to_async(cls.batch_stats_for)(product_ids)
