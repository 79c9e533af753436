"""
Tests for the stock ledger (StockLedger).
"""

import logging

import pytest
from django.utils import timezone

from depotman.exceptions import InsufficientStockError, NotFoundError, ValidationError
from depotman.models import LocationStock, MovementType, ReferenceType, StockMovement


pytestmark = pytest.mark.django_db

OIL = 1
RICE, RICE_1KG = 2, 21


def quantity_at(location, product_id, variant_id=None):
    return LocationStock.objects.get(
        location=location, product_id=product_id, variant_id=variant_id
    ).quantity


class TestRecordMovementSigns:
    """Sign convention per movement type."""

    def test_in_adds(self, depot, store_a, actor):
        """'in' takes a magnitude and adds it."""
        movement = depot.ledger.record_movement(OIL, 'in', 10, actor, location=store_a)

        assert movement.quantity == 10
        assert movement.movement_type == MovementType.IN
        assert quantity_at(store_a, OIL) == 10

    def test_out_subtracts(self, depot, stocked, actor):
        """'out' takes a magnitude and subtracts it."""
        movement = depot.ledger.record_movement(OIL, 'out', 15, actor, location=stocked)

        assert movement.quantity == -15
        assert quantity_at(stocked, OIL) == 35

    def test_return_adds(self, depot, stocked, actor):
        """'return' puts units back."""
        depot.ledger.record_movement(OIL, MovementType.RETURN, 5, actor, location=stocked)

        assert quantity_at(stocked, OIL) == 55

    def test_adjustment_is_signed(self, depot, stocked, actor):
        """'adjustment' applies the caller's sign."""
        depot.ledger.record_movement(OIL, 'adjustment', -8, actor, location=stocked)
        depot.ledger.record_movement(OIL, 'adjustment', 3, actor, location=stocked)

        assert quantity_at(stocked, OIL) == 45

    def test_transfer_type_is_signed(self, depot, stocked, actor):
        """'transfer' movements carry their own sign too."""
        movement = depot.ledger.record_movement(OIL, 'transfer', -4, actor, location=stocked)

        assert movement.quantity == -4
        assert quantity_at(stocked, OIL) == 46

    @pytest.mark.parametrize('movement_type', ['in', 'out', 'return', 'adjustment', 'transfer'])
    def test_zero_rejected(self, depot, store_a, actor, movement_type):
        """Zero quantity is never a movement."""
        with pytest.raises(ValidationError) as exc:
            depot.ledger.record_movement(OIL, movement_type, 0, actor, location=store_a)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert StockMovement.objects.count() == 0

    def test_negative_magnitude_rejected(self, depot, stocked, actor):
        """Fixed-sign types refuse a negative quantity."""
        with pytest.raises(ValidationError) as exc:
            depot.ledger.record_movement(OIL, 'out', -5, actor, location=stocked)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert quantity_at(stocked, OIL) == 50

    @pytest.mark.parametrize('quantity', [2.5, '3', True])
    def test_non_integer_rejected(self, depot, stocked, actor, quantity):
        """Only ints are quantities; stock and ledger stay in step."""
        with pytest.raises(ValidationError) as exc:
            depot.ledger.record_movement(OIL, 'in', quantity, actor, location=stocked)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert quantity_at(stocked, OIL) == 50
        assert StockMovement.objects.count() == 1
        assert depot.ledger.reconcile() == []

    def test_unknown_movement_type(self, depot, store_a, actor):
        with pytest.raises(ValidationError) as exc:
            depot.ledger.record_movement(OIL, 'teleport', 1, actor, location=store_a)

        assert exc.value.code == 'INVALID_MOVEMENT_TYPE'

    def test_unknown_reference_type(self, depot, store_a, actor):
        with pytest.raises(ValidationError) as exc:
            depot.ledger.record_movement(
                OIL, 'in', 1, actor, location=store_a, reference_type='gift',
            )

        assert exc.value.code == 'INVALID_REFERENCE_TYPE'


class TestRecordMovementRules:
    """Location resolution, catalog checks and negative stock."""

    def test_no_location_uses_default(self, depot, store_a, store_b, actor):
        """Movements without a location land at the default location."""
        movement = depot.ledger.record_movement(OIL, 'in', 4, actor)

        assert movement.location == store_a
        assert quantity_at(store_a, OIL) == 4

    def test_no_default_location(self, depot, store_b, actor):
        with pytest.raises(NotFoundError) as exc:
            depot.ledger.record_movement(OIL, 'in', 4, actor)

        assert exc.value.code == 'NO_DEFAULT_LOCATION'

    def test_location_by_code(self, depot, store_b, actor):
        depot.ledger.record_movement(OIL, 'in', 4, actor, location='store-b')

        assert quantity_at(store_b, OIL) == 4

    def test_unknown_location(self, depot, store_a, actor):
        with pytest.raises(NotFoundError) as exc:
            depot.ledger.record_movement(OIL, 'in', 4, actor, location='nowhere')

        assert exc.value.code == 'LOCATION_NOT_FOUND'

    def test_unknown_product(self, depot, store_a, actor):
        with pytest.raises(NotFoundError) as exc:
            depot.ledger.record_movement(999, 'in', 4, actor, location=store_a)

        assert exc.value.code == 'PRODUCT_NOT_FOUND'
        assert not LocationStock.objects.exists()

    def test_unknown_variant(self, depot, store_a, actor):
        with pytest.raises(NotFoundError) as exc:
            depot.ledger.record_movement(RICE, 'in', 4, actor, variant_id=99, location=store_a)

        assert exc.value.code == 'VARIANT_NOT_FOUND'

    def test_variant_rows_are_separate(self, depot, store_a, actor):
        """Product-level and variant-level stock are different rows."""
        depot.ledger.record_movement(RICE, 'in', 4, actor, location=store_a)
        depot.ledger.record_movement(RICE, 'in', 6, actor, variant_id=RICE_1KG, location=store_a)

        assert quantity_at(store_a, RICE) == 4
        assert quantity_at(store_a, RICE, RICE_1KG) == 6

    def test_insufficient_stock_writes_nothing(self, depot, stocked, actor):
        """A refused 'out' leaves neither a movement nor a stock change."""
        with pytest.raises(InsufficientStockError) as exc:
            depot.ledger.record_movement(OIL, 'out', 51, actor, location=stocked)

        assert exc.value.code == 'INSUFFICIENT_QUANTITY'
        assert exc.value.available == 50
        assert exc.value.requested == 51
        assert quantity_at(stocked, OIL) == 50
        assert StockMovement.objects.count() == 1

    def test_negative_allowed_by_location_policy(self, depot, warehouse, actor):
        """Locations with allow_negative_stock may go below zero."""
        depot.ledger.record_movement(OIL, 'out', 5, actor, location=warehouse)

        assert quantity_at(warehouse, OIL) == -5

    def test_policy_read_from_database(self, depot, warehouse, actor):
        """A stale instance cannot override a policy switched off since."""
        depot.locations.update('warehouse', allow_negative_stock=False)
        assert warehouse.allow_negative_stock

        with pytest.raises(InsufficientStockError):
            depot.ledger.record_movement(OIL, 'out', 5, actor, location=warehouse)

        assert depot.projector.total(OIL, location=warehouse) == 0

    def test_reference_recorded(self, depot, stocked, actor):
        movement = depot.ledger.record_movement(
            OIL, 'out', 2, actor, location=stocked,
            reference_type=ReferenceType.SALE, reference_id=1234, notes='Receipt 1234',
        )

        assert movement.reference_type == 'sale'
        assert movement.reference_id == 1234
        assert movement.actor_id == actor
        assert movement.stock.quantity == 48

    def test_logs_movement(self, depot, store_a, actor, caplog):
        caplog.set_level(logging.INFO, logger='depotman')

        depot.ledger.record_movement(OIL, 'in', 3, actor, location=store_a)

        records = [r for r in caplog.records if r.getMessage() == 'stock.movement.recorded']
        assert len(records) == 1
        assert records[0].qty == 3
        assert records[0].location == 'store-a'


class TestMovementImmutability:
    """Ledger rows are never changed or removed."""

    def test_save_existing_raises(self, depot, stocked):
        movement = StockMovement.objects.get()
        movement.notes = 'edited'

        with pytest.raises(ValueError):
            movement.save()

    def test_delete_raises(self, depot, stocked):
        with pytest.raises(ValueError):
            StockMovement.objects.get().delete()

    def test_queryset_update_raises(self, depot, stocked):
        with pytest.raises(ValueError):
            StockMovement.objects.update(quantity=1)

    def test_queryset_delete_raises(self, depot, stocked):
        with pytest.raises(ValueError):
            StockMovement.objects.all().delete()


class TestSetQuantity:
    """Stock counts expressed as absolute quantities."""

    def test_records_adjustment_for_difference(self, depot, stocked, actor):
        movement = depot.ledger.set_quantity(stocked, OIL, 30, actor)

        assert movement.movement_type == MovementType.ADJUSTMENT
        assert movement.reference_type == ReferenceType.ADJUSTMENT
        assert movement.quantity == -20
        assert quantity_at(stocked, OIL) == 30

    def test_no_change_no_movement(self, depot, stocked, actor):
        assert depot.ledger.set_quantity(stocked, OIL, 50, actor) is None
        assert StockMovement.objects.count() == 1

    def test_from_nothing(self, depot, store_b, actor):
        """Counting an untouched product creates its row."""
        depot.ledger.set_quantity(store_b, OIL, 12, actor)

        assert quantity_at(store_b, OIL) == 12

    def test_negative_refused_without_policy(self, depot, stocked, actor):
        with pytest.raises(InsufficientStockError) as exc:
            depot.ledger.set_quantity(stocked, OIL, -1, actor)

        assert exc.value.code == 'INSUFFICIENT_QUANTITY'
        assert quantity_at(stocked, OIL) == 50

    def test_negative_count_allowed_by_policy(self, depot, warehouse, actor):
        depot.ledger.set_quantity(warehouse, OIL, -2, actor)

        assert quantity_at(warehouse, OIL) == -2

    def test_non_integer_count(self, depot, stocked, actor):
        with pytest.raises(ValidationError) as exc:
            depot.ledger.set_quantity(stocked, OIL, 12.5, actor)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert quantity_at(stocked, OIL) == 50


class TestQueryMovements:
    """Read paths over the ledger."""

    def test_newest_first(self, depot, stocked, actor):
        depot.ledger.record_movement(OIL, 'out', 1, actor, location=stocked)
        depot.ledger.record_movement(OIL, 'out', 2, actor, location=stocked)

        quantities = [m.quantity for m in depot.ledger.query_movements(product_id=OIL)]

        assert quantities == [-2, -1, 50]

    def test_restartable(self, depot, stocked):
        """The same query can be iterated more than once."""
        qs = depot.ledger.query_movements(location=stocked)

        assert list(qs) == list(qs)

    def test_filters(self, depot, stocked, store_b, actor):
        depot.ledger.record_movement(OIL, 'in', 5, actor, location=store_b)
        depot.ledger.record_movement(
            OIL, 'out', 3, actor, location=stocked, reference_type='sale', reference_id=9,
        )

        assert depot.ledger.query_movements(location=store_b).count() == 1
        assert depot.ledger.query_movements(movement_type='out').count() == 1
        assert depot.ledger.query_movements(reference_type='sale', reference_id=9).count() == 1
        assert depot.ledger.query_movements(product_id=RICE).count() == 0

    def test_variant_filter(self, depot, store_a, actor):
        depot.ledger.record_movement(RICE, 'in', 1, actor, location=store_a)
        depot.ledger.record_movement(RICE, 'in', 2, actor, variant_id=RICE_1KG, location=store_a)

        assert depot.ledger.query_movements(product_id=RICE).count() == 2
        assert depot.ledger.query_movements(product_id=RICE, variant_id=None).count() == 1
        assert depot.ledger.query_movements(product_id=RICE, variant_id=RICE_1KG).count() == 1

    def test_date_filter(self, depot, stocked):
        today = timezone.localdate()

        assert depot.ledger.query_movements(date_from=today, date_to=today).count() == 1

    def test_list_movements_paginates(self, depot, stocked, actor):
        for _ in range(4):
            depot.ledger.record_movement(OIL, 'out', 1, actor, location=stocked)

        page = depot.ledger.list_movements(page=2, limit=2, product_id=OIL)

        assert page.total == 5
        assert page.total_pages == 3
        assert page.has_next
        assert len(page) == 2

    def test_page_past_end_is_empty(self, depot, stocked):
        page = depot.ledger.list_movements(page=5, limit=10)

        assert len(page) == 0
        assert page.total == 1

    def test_invalid_page(self, depot, stocked):
        with pytest.raises(ValidationError) as exc:
            depot.ledger.list_movements(page=0)

        assert exc.value.code == 'INVALID_PAGE'

    def test_zero_limit_is_invalid(self, depot, stocked):
        with pytest.raises(ValidationError) as exc:
            depot.ledger.list_movements(limit=0)

        assert exc.value.code == 'INVALID_PAGE'

    def test_balance_matches_stock(self, depot, stocked, actor):
        depot.ledger.record_movement(OIL, 'out', 7, actor, location=stocked)

        assert depot.ledger.balance(stocked, OIL) == quantity_at(stocked, OIL) == 43


class TestReconcile:
    """Stock rows checked against their ledger."""

    def test_consistent_ledger(self, depot, stocked, actor):
        depot.ledger.record_movement(OIL, 'out', 5, actor, location=stocked)

        assert depot.ledger.reconcile() == []

    def test_detects_and_repairs_drift(self, depot, stocked):
        LocationStock.objects.filter(location=stocked, product_id=OIL).update(quantity=99)

        [discrepancy] = depot.ledger.reconcile(stocked)
        assert discrepancy.ledger_total == 50
        assert discrepancy.difference == 49

        assert depot.ledger.repair() == 1
        assert quantity_at(stocked, OIL) == 50
        assert depot.ledger.reconcile() == []

    def test_empty_row_with_drift(self, depot, store_b):
        """A row with no movements must hold zero."""
        row = depot.registry.get_or_init(store_b, OIL)
        LocationStock.objects.filter(pk=row.pk).update(quantity=3)

        [discrepancy] = depot.ledger.reconcile()
        assert discrepancy.ledger_total == 0
