"""
Depotman Adapters.

Implementations of protocols for external systems.
"""

from depotman.adapters.catalog import get_catalog, reset_catalog
from depotman.adapters.memory import InMemoryCatalog
from depotman.adapters.noop import NoopCatalog

__all__ = [
    "get_catalog",
    "reset_catalog",
    "InMemoryCatalog",
    "NoopCatalog",
]
