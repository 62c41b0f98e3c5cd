"""
Vaultman Adapters.

Loads the configured ProductCatalog from settings.

Usage:
    from vaultman.adapters import get_catalog

    if get_catalog().product_exists(7):
        ...

Settings:
    VAULTMAN = {
        "CATALOG_BACKEND": "shop.adapters.catalog.ShopCatalog",
    }

If CATALOG_BACKEND is not configured, get_catalog() raises ImproperlyConfigured.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from vaultman.conf import vaultman_settings
from vaultman.protocols.catalog import ProductCatalog

logger = logging.getLogger(__name__)


# Cached catalog instance
_lock = threading.Lock()
_catalog: ProductCatalog | None = None


def get_catalog() -> ProductCatalog:
    """
    Return the configured product catalog.

    Raises:
        ImproperlyConfigured: If CATALOG_BACKEND is not configured, fails to
            import, or doesn't implement ProductCatalog
    """
    global _catalog

    if _catalog is None:
        with _lock:
            if _catalog is None:  # double-checked
                backend_path = vaultman_settings.CATALOG_BACKEND

                if not backend_path:
                    raise ImproperlyConfigured(
                        "VAULTMAN['CATALOG_BACKEND'] must be configured when "
                        "VALIDATE_PRODUCTS is on. "
                        "Example: 'vaultman.adapters.noop.NoopCatalog'"
                    )

                try:
                    backend = import_string(backend_path)()
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import catalog backend '{backend_path}': {e}"
                    ) from e

                if not isinstance(backend, ProductCatalog):
                    raise ImproperlyConfigured(
                        f"'{backend_path}' does not implement ProductCatalog"
                    )

                _catalog = backend
                logger.debug("Loaded catalog backend: %s", backend_path)

    return _catalog


def reset_catalog() -> None:
    """Reset the cached catalog. Useful for testing."""
    global _catalog
    _catalog = None


__all__ = [
    "get_catalog",
    "reset_catalog",
]
