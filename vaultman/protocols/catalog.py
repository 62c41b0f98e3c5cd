"""
Product Catalog Protocol — Interface for product existence checks.

Vaultman only knows product ids. The storefront's catalog implements this
protocol so imports can refuse stock for products that don't exist.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProductCatalog(Protocol):
    """Protocol for product lookups."""

    def product_exists(self, product_id: int) -> bool:
        """
        Check if a product exists and may receive stock.

        Args:
            product_id: Catalog product id

        Returns:
            True if stock can be imported for the product
        """
        ...
