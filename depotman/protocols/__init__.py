"""
Depotman Protocols.

Defines interfaces for external system integration.
"""

from depotman.protocols.catalog import CatalogBackend, ProductInfo

__all__ = [
    "CatalogBackend",
    "ProductInfo",
]
