"""
Noop Catalog — Stub adapter for development and testing.

Usage in settings.py:
    VAULTMAN = {
        "CATALOG_BACKEND": "vaultman.adapters.noop.NoopCatalog",
        "VALIDATE_PRODUCTS": True,
    }

WARNING: Do NOT use in production. Every product id is accepted,
including ids of deleted or nonexistent products.
"""

from __future__ import annotations


class NoopCatalog:
    """
    No-operation catalog for development and testing.

    Implements the ``ProductCatalog`` protocol without a real catalog.
    """

    def product_exists(self, product_id: int) -> bool:
        """Every positive id exists."""
        return isinstance(product_id, int) and product_id > 0
