"""
Catalog Protocol — Interface for product/variant lookup.

Depotman defines this protocol; the host project's catalog implements it.
The stock core only needs to know whether a product (or variant) exists,
plus display metadata for stock listings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ProductInfo:
    """Display metadata for a product, optionally narrowed to one variant."""

    product_id: int
    name: str
    sku: str
    category: str | None = None
    variant_id: int | None = None
    variant_name: str | None = None
    variant_sku: str | None = None
    is_active: bool = True


@runtime_checkable
class CatalogBackend(Protocol):
    """
    Protocol for catalog lookups.

    Implementations should provide methods to:
    - Check that a product / variant exists
    - Get display information for listings
    - Search products by name or SKU
    """

    def product_exists(self, product_id: int) -> bool:
        """
        Check whether a product exists.

        Args:
            product_id: Catalog product id

        Returns:
            True if the product is known to the catalog
        """
        ...

    def variant_exists(self, product_id: int, variant_id: int) -> bool:
        """
        Check whether a variant exists and belongs to the product.

        Args:
            product_id: Catalog product id
            variant_id: Catalog variant id

        Returns:
            True if the variant is known and belongs to product_id
        """
        ...

    def get_product_info(self, product_id: int, variant_id: int | None = None) -> ProductInfo | None:
        """
        Get display information.

        Args:
            product_id: Catalog product id
            variant_id: Optional variant id

        Returns:
            ProductInfo or None if not found
        """
        ...

    def search_products(self, query: str, limit: int = 50) -> list[ProductInfo]:
        """
        Search products (and variants) by name or SKU.

        Args:
            query: Search term
            limit: Maximum results

        Returns:
            List of ProductInfo
        """
        ...
