"""
Depotman configuration.

Usage in settings.py:
    DEPOTMAN = {
        "CATALOG_BACKEND": "myshop.adapters.catalog.ShopCatalog",
        "VALIDATE_PRODUCTS": True,
        "TRANSFER_NUMBER_PREFIX": "ST",
        "DEFAULT_PAGE_SIZE": 20,
        "MAX_PAGE_SIZE": 200,
        "STALE_TRANSFER_DAYS": 7,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class DepotmanSettings:
    """Depotman configuration settings."""

    # Catalog backend (dotted path to a CatalogBackend implementation)
    CATALOG_BACKEND: str = ""

    # Check product/variant existence through the catalog before stock operations
    VALIDATE_PRODUCTS: bool = True

    # Transfer numbers look like ST-20260118-001
    TRANSFER_NUMBER_PREFIX: str = "ST"

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 200

    # In-transit transfers older than this are reported as stale
    STALE_TRANSFER_DAYS: int = 7


def get_depotman_settings() -> DepotmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "DEPOTMAN", {})
    return DepotmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in DepotmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_depotman_settings(), name)


depot_settings = _LazySettings()
