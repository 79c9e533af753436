"""
Tests for catalog loading and the bundled adapters.
"""

import pytest
from django.core.exceptions import ImproperlyConfigured

from depotman.adapters import InMemoryCatalog, NoopCatalog, get_catalog, reset_catalog
from depotman.protocols import CatalogBackend


class TestGetCatalog:

    def test_loads_configured_backend(self):
        catalog = get_catalog()

        assert isinstance(catalog, NoopCatalog)
        assert get_catalog() is catalog

    def test_reset(self):
        first = get_catalog()
        reset_catalog()

        assert get_catalog() is not first

    def test_not_configured(self, settings):
        settings.DEPOTMAN = {}

        with pytest.raises(ImproperlyConfigured):
            get_catalog()

    def test_bad_path(self, settings):
        settings.DEPOTMAN = {'CATALOG_BACKEND': 'depotman.adapters.nothing.Catalog'}

        with pytest.raises(ImproperlyConfigured):
            get_catalog()

    def test_not_a_catalog(self, settings):
        settings.DEPOTMAN = {'CATALOG_BACKEND': 'collections.OrderedDict'}

        with pytest.raises(ImproperlyConfigured):
            get_catalog()

    def test_in_memory_backend(self, settings):
        settings.DEPOTMAN = {'CATALOG_BACKEND': 'depotman.adapters.memory.InMemoryCatalog'}

        assert isinstance(get_catalog(), InMemoryCatalog)


class TestInMemoryCatalog:

    def test_is_a_catalog_backend(self, catalog):
        assert isinstance(catalog, CatalogBackend)

    def test_existence(self, catalog):
        assert catalog.product_exists(1)
        assert not catalog.product_exists(3)
        assert catalog.variant_exists(2, 21)
        assert not catalog.variant_exists(1, 21)

    def test_variant_info_inherits_product(self, catalog):
        info = catalog.get_product_info(2, 22)

        assert info.name == 'Basmati Rice'
        assert info.variant_sku == 'RICE-5KG'
        assert info.category == 'Pantry'

    def test_search(self, catalog):
        assert {info.sku for info in catalog.search_products('oil')} == {'OIL-1L'}
        assert len(catalog.search_products('rice-5')) == 1
        assert len(catalog.search_products('rice', limit=2)) == 2

    def test_variant_needs_product(self):
        with pytest.raises(KeyError):
            InMemoryCatalog().add_variant(5, 51, 'x', 'X')


class TestNoopCatalog:

    def test_accepts_everything(self):
        catalog = NoopCatalog()

        assert catalog.product_exists(123)
        assert catalog.variant_exists(123, 4)
        assert catalog.get_product_info(123, 4).sku == 'P123-V4'
        assert catalog.search_products('anything') == []
