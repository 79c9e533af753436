"""
Pytest fixtures for Depotman tests.

Settings are configured here, so model imports happen inside fixtures and
in the test modules, never at the top of this file.
"""

import pytest
from django.conf import settings

from depotman.adapters import InMemoryCatalog, reset_catalog


def pytest_configure():
    if settings.configured:
        return
    settings.configure(
        DATABASES={
            'default': {
                'ENGINE': 'django.db.backends.sqlite3',
                'NAME': ':memory:',
            },
        },
        INSTALLED_APPS=['depotman'],
        USE_TZ=True,
        TIME_ZONE='UTC',
        DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
        DEPOTMAN={
            'CATALOG_BACKEND': 'depotman.adapters.noop.NoopCatalog',
        },
    )


@pytest.fixture(autouse=True)
def _fresh_singletons():
    """Cached catalog and default depot do not leak between tests."""
    from depotman.service import reset_depot

    reset_catalog()
    reset_depot()
    yield
    reset_catalog()
    reset_depot()


@pytest.fixture
def catalog():
    """
    In-memory catalog.

    1  Olive Oil 1L     (no variants)
    2  Basmati Rice     variants 21 (1kg) and 22 (5kg)
    """
    catalog = InMemoryCatalog()
    catalog.add_product(1, 'Olive Oil 1L', 'OIL-1L', category='Pantry')
    catalog.add_product(2, 'Basmati Rice', 'RICE', category='Pantry')
    catalog.add_variant(2, 21, 'Basmati Rice 1kg', 'RICE-1KG')
    catalog.add_variant(2, 22, 'Basmati Rice 5kg', 'RICE-5KG')
    return catalog


@pytest.fixture
def depot(db, catalog):
    """Depot wired to the in-memory catalog."""
    from depotman.service import Depot

    return Depot(catalog=catalog)


@pytest.fixture
def store_a(db):
    """Default store."""
    from depotman.models import Location, LocationKind

    return Location.objects.create(
        code='store-a',
        name='Store A',
        kind=LocationKind.MAIN,
        is_default=True,
    )


@pytest.fixture
def store_b(db):
    """Second store, no negative stock."""
    from depotman.models import Location, LocationKind

    return Location.objects.create(
        code='store-b',
        name='Store B',
        kind=LocationKind.BRANCH,
    )


@pytest.fixture
def warehouse(db):
    """Warehouse that may go below zero."""
    from depotman.models import Location, LocationKind

    return Location.objects.create(
        code='warehouse',
        name='Central Warehouse',
        kind=LocationKind.WAREHOUSE,
        allow_negative_stock=True,
    )


@pytest.fixture
def actor():
    """Opaque actor id."""
    return 7


@pytest.fixture
def stocked(depot, store_a, actor):
    """Store A holds 50 units of Olive Oil (product 1)."""
    depot.ledger.record_movement(1, 'in', 50, actor, location=store_a)
    return store_a
