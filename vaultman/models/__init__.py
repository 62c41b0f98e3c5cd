"""
Vaultman Models.

- StockUnit: one allocatable piece of digital stock (code, link, license)
"""

from vaultman.models.unit import ALLOCATION_ORDER, StockUnit, StockUnitQuerySet

__all__ = [
    'ALLOCATION_ORDER',
    'StockUnit',
    'StockUnitQuerySet',
]
