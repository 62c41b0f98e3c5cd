"""
Vaultman configuration.

Usage in settings.py:
    VAULTMAN = {
        "WRITE_MAX_ATTEMPTS": 3,
        "LOW_STOCK_THRESHOLD": 10,
        "CATALOG_BACKEND": "shop.adapters.catalog.ShopCatalog",
        "VALIDATE_PRODUCTS": True,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class VaultmanSettings:
    """Vaultman configuration settings."""

    # Attempts for the allocate/release write path (lost races, store errors)
    WRITE_MAX_ATTEMPTS: int = 3

    # Base delay between write attempts, doubled on every retry
    RETRY_BACKOFF_SECONDS: float = 0.05

    # Products with fewer available units than this are "low stock"
    LOW_STOCK_THRESHOLD: int = 10

    # Number of batches shown in the dashboard overview
    RECENT_BATCHES: int = 5

    # Highest priority accepted by the importer
    MAX_PRIORITY: int = 100

    # Rows per INSERT statement during bulk import
    IMPORT_BULK_SIZE: int = 500

    # Prefix of generated batch names ("import_1718000000000")
    BATCH_NAME_PREFIX: str = "import"

    # Batch size for sweep_expired processing
    EXPIRED_BATCH_SIZE: int = 200

    # Product catalog backend (dotted path)
    CATALOG_BACKEND: str = ""

    # Check product existence via the catalog backend before importing
    VALIDATE_PRODUCTS: bool = False


def get_vaultman_settings() -> VaultmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "VAULTMAN", {})
    return VaultmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in VaultmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_vaultman_settings(), name)


vaultman_settings = _LazySettings()
