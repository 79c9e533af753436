"""
In-memory Catalog — dict-backed CatalogBackend.

Handy for local development, fixtures and tests where a real catalog
service is not available. Products and variants are registered in code:

    catalog = InMemoryCatalog()
    catalog.add_product(1, 'Olive Oil 1L', 'OIL-1L', category='Pantry')
    catalog.add_variant(1, 11, 'Olive Oil 1L (glass)', 'OIL-1L-G')
"""

from __future__ import annotations

from depotman.protocols.catalog import ProductInfo


class InMemoryCatalog:
    """Catalog that lives in a pair of dicts."""

    def __init__(self):
        self._products: dict[int, ProductInfo] = {}
        self._variants: dict[tuple[int, int], ProductInfo] = {}

    def add_product(self, product_id: int, name: str, sku: str,
                    category: str | None = None, is_active: bool = True) -> ProductInfo:
        info = ProductInfo(
            product_id=product_id,
            name=name,
            sku=sku,
            category=category,
            is_active=is_active,
        )
        self._products[product_id] = info
        return info

    def add_variant(self, product_id: int, variant_id: int, name: str, sku: str,
                    is_active: bool = True) -> ProductInfo:
        """Register a variant. The parent product must exist."""
        parent = self._products[product_id]
        info = ProductInfo(
            product_id=product_id,
            name=parent.name,
            sku=parent.sku,
            category=parent.category,
            variant_id=variant_id,
            variant_name=name,
            variant_sku=sku,
            is_active=is_active,
        )
        self._variants[(product_id, variant_id)] = info
        return info

    # CatalogBackend

    def product_exists(self, product_id: int) -> bool:
        return product_id in self._products

    def variant_exists(self, product_id: int, variant_id: int) -> bool:
        return (product_id, variant_id) in self._variants

    def get_product_info(self, product_id: int, variant_id: int | None = None) -> ProductInfo | None:
        if variant_id is None:
            return self._products.get(product_id)
        return self._variants.get((product_id, variant_id))

    def search_products(self, query: str, limit: int = 50) -> list[ProductInfo]:
        needle = query.casefold()
        matches = [
            info for info in [*self._products.values(), *self._variants.values()]
            if needle in info.name.casefold()
            or needle in info.sku.casefold()
            or needle in (info.variant_name or '').casefold()
            or needle in (info.variant_sku or '').casefold()
        ]
        return matches[:limit]
