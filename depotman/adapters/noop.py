"""
Noop Catalog — Stub adapter for development.

This adapter implements the CatalogBackend protocol with trivial defaults:
- Every product and variant exists
- Product info returns minimal placeholder data

Usage in settings.py:
    DEPOTMAN = {
        "CATALOG_BACKEND": "depotman.adapters.noop.NoopCatalog",
    }

WARNING: Do NOT use in production. Stock would be accepted for product
ids that do not exist.
"""

from __future__ import annotations

from depotman.protocols.catalog import ProductInfo


class NoopCatalog:
    """No-operation catalog: everything exists, nothing is searchable."""

    def product_exists(self, product_id: int) -> bool:
        return True

    def variant_exists(self, product_id: int, variant_id: int) -> bool:
        return True

    def get_product_info(self, product_id: int, variant_id: int | None = None) -> ProductInfo | None:
        """Placeholder info (name and SKU derived from the ids)."""
        sku = f"P{product_id}" if variant_id is None else f"P{product_id}-V{variant_id}"
        return ProductInfo(
            product_id=product_id,
            name=sku,
            sku=sku,
            variant_id=variant_id,
        )

    def search_products(self, query: str, limit: int = 50) -> list[ProductInfo]:
        return []
