"""
Stock services — modular organization of stock operations.

Re-exports all public classes:
    from vaultman.services import StockQueries, StockAllocation, StockStats, StockImports
"""

from vaultman.services.allocation import StockAllocation
from vaultman.services.imports import StockImports
from vaultman.services.queries import StockQueries
from vaultman.services.stats import BatchSummary, StockStats, UnitStats

__all__ = [
    'StockQueries',
    'StockAllocation',
    'StockStats',
    'StockImports',
    'UnitStats',
    'BatchSummary',
]
