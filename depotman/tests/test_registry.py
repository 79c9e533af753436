"""
Tests for location stock rows (LocationStockRegistry).
"""

import pytest

from depotman.exceptions import InsufficientStockError, NotFoundError, ValidationError
from depotman.models import LocationStock, StockMovement


pytestmark = pytest.mark.django_db

OIL = 1
RICE, RICE_1KG, RICE_5KG = 2, 21, 22


class TestGetOrInit:
    """Rows are materialized on first touch."""

    def test_creates_zero_row(self, depot, store_a):
        row = depot.registry.get_or_init(store_a, OIL)

        assert row.quantity == 0
        assert row.reserved_quantity == 0
        assert row.variant_id is None

    def test_idempotent(self, depot, store_a):
        first = depot.registry.get_or_init(store_a, OIL)
        second = depot.registry.get_or_init(store_a, OIL)

        assert first.pk == second.pk
        assert LocationStock.objects.count() == 1

    def test_variant_rows(self, depot, store_a):
        depot.registry.get_or_init(store_a, RICE, RICE_1KG)
        depot.registry.get_or_init(store_a, RICE, RICE_5KG)
        depot.registry.get_or_init(store_a, RICE)

        assert LocationStock.objects.filter(product_id=RICE).count() == 3

    def test_get_never_creates(self, depot, store_a):
        assert depot.registry.get(store_a, OIL) is None
        assert not LocationStock.objects.exists()

    def test_unknown_product(self, depot, store_a):
        with pytest.raises(NotFoundError) as exc:
            depot.registry.get_or_init(store_a, 999)

        assert exc.value.code == 'PRODUCT_NOT_FOUND'

    def test_validation_can_be_disabled(self, depot, store_a, settings):
        settings.DEPOTMAN = {'VALIDATE_PRODUCTS': False}

        row = depot.registry.get_or_init(store_a, 999)

        assert row.product_id == 999


class TestAdjust:
    """The single code path that changes quantity."""

    def test_returns_new_quantity(self, depot, store_a, actor):
        assert depot.registry.adjust(store_a, OIL, None, 5, actor) == 5
        assert depot.registry.adjust(store_a, OIL, None, -2, actor) == 3

    def test_zero_delta(self, depot, store_a, actor):
        with pytest.raises(ValidationError):
            depot.registry.adjust(store_a, OIL, None, 0, actor)

    def test_refuses_negative(self, depot, store_b, actor):
        with pytest.raises(InsufficientStockError) as exc:
            depot.registry.adjust(store_b, OIL, None, -1, actor)

        assert exc.value.data['location'] == 'store-b'
        assert depot.projector.total(OIL, location=store_b) == 0

    def test_negative_location(self, depot, warehouse, actor):
        assert depot.registry.adjust(warehouse, OIL, None, -3, actor) == -3

    def test_policy_switched_off_since(self, depot, warehouse, actor):
        depot.locations.update(warehouse, allow_negative_stock=False)

        with pytest.raises(InsufficientStockError):
            depot.registry.adjust(warehouse, OIL, None, -3, actor)

    def test_fractional_delta(self, depot, store_a, actor):
        with pytest.raises(ValidationError) as exc:
            depot.registry.adjust(store_a, OIL, None, 0.5, actor)

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_updates_last_updated(self, depot, store_a, actor):
        row = depot.registry.get_or_init(store_a, OIL)
        before = row.last_updated

        depot.registry.adjust(store_a, OIL, None, 1, actor)

        row.refresh_from_db()
        assert row.last_updated >= before


class TestLockRows:

    def test_returns_rows_in_pk_order(self, depot, store_a, store_b):
        rows = depot.registry.lock_rows([
            (store_b, OIL, None),
            (store_a, OIL, None),
            (store_a, OIL, None),
        ])

        assert [r.pk for r in rows] == sorted(r.pk for r in rows)
        assert len(rows) == 2


class TestThresholds:

    def test_set_min_and_max(self, depot, store_a):
        row = depot.registry.set_thresholds(store_a, OIL, min_stock=5, max_stock=40)

        assert (row.min_stock, row.max_stock) == (5, 40)

    def test_none_keeps_value(self, depot, store_a):
        depot.registry.set_thresholds(store_a, OIL, min_stock=5, max_stock=40)
        row = depot.registry.set_thresholds(store_a, OIL, max_stock=60)

        assert (row.min_stock, row.max_stock) == (5, 60)

    def test_max_below_min(self, depot, store_a):
        with pytest.raises(ValidationError) as exc:
            depot.registry.set_thresholds(store_a, OIL, min_stock=10, max_stock=5)

        assert exc.value.code == 'INVALID_THRESHOLDS'

    def test_low_stock(self, depot, stocked, store_b, actor):
        depot.registry.set_thresholds(stocked, OIL, min_stock=60)
        depot.registry.set_thresholds(store_b, OIL, min_stock=0)

        low = list(depot.registry.low_stock())

        assert [r.location_id for r in low] == [stocked.pk]
        assert low[0].is_low


class TestReservations:
    """Reserved units reduce availability, not quantity."""

    def test_reserve_and_release(self, depot, stocked):
        row = depot.registry.reserve(stocked, OIL, 20)

        assert row.reserved_quantity == 20
        assert row.available == 30
        assert row.quantity == 50

        row = depot.registry.release(stocked, OIL, 5)
        assert row.reserved_quantity == 15

    def test_reserve_more_than_available(self, depot, stocked):
        depot.registry.reserve(stocked, OIL, 40)

        with pytest.raises(InsufficientStockError) as exc:
            depot.registry.reserve(stocked, OIL, 11)

        assert exc.value.code == 'INSUFFICIENT_AVAILABLE'
        assert exc.value.available == 10

    def test_release_more_than_reserved(self, depot, stocked):
        with pytest.raises(ValidationError) as exc:
            depot.registry.release(stocked, OIL, 1)

        assert exc.value.code == 'RELEASE_EXCEEDS_RESERVED'

    def test_reservations_write_no_movements(self, depot, stocked):
        depot.registry.reserve(stocked, OIL, 5)

        assert StockMovement.objects.count() == 1


class TestList:
    """Location stock listing with catalog data."""

    @pytest.fixture
    def shelf(self, depot, store_a, actor):
        depot.ledger.record_movement(OIL, 'in', 10, actor, location=store_a)
        depot.ledger.record_movement(RICE, 'in', 3, actor, variant_id=RICE_1KG, location=store_a)
        depot.registry.get_or_init(store_a, RICE, RICE_5KG)
        return store_a

    def test_joins_catalog(self, depot, shelf):
        page = depot.registry.list(shelf)

        assert page.total == 3
        first = page.items[0]
        assert first.product.name == 'Olive Oil 1L'
        assert first.quantity == 10

    def test_exclude_empty(self, depot, shelf):
        page = depot.registry.list(shelf, include_empty=False)

        assert page.total == 2

    def test_search(self, depot, shelf):
        page = depot.registry.list(shelf, search='rice')

        assert {level.stock.product_id for level in page} == {RICE}
        assert page.total == 2

    def test_order_by_quantity(self, depot, shelf):
        page = depot.registry.list(shelf, order_by='-quantity')

        assert [level.quantity for level in page] == [10, 3, 0]

    def test_low_stock_only(self, depot, shelf):
        depot.registry.set_thresholds(shelf, RICE, RICE_1KG, min_stock=5)

        page = depot.registry.list(shelf, low_stock_only=True)

        assert [level.stock.variant_id for level in page] == [RICE_1KG]

    def test_unknown_ordering(self, depot, shelf):
        with pytest.raises(ValidationError):
            depot.registry.list(shelf, order_by='name')

    def test_limit_above_max(self, depot, shelf):
        with pytest.raises(ValidationError) as exc:
            depot.registry.list(shelf, limit=1000)

        assert exc.value.code == 'INVALID_PAGE'
