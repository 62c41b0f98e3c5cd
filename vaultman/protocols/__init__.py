"""
Vaultman Protocols.

Defines interfaces for external system integration.
"""

from vaultman.protocols.catalog import ProductCatalog

__all__ = [
    "ProductCatalog",
]
