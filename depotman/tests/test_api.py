"""
Tests for the envelope API (DepotAPI).
"""

import pytest

from depotman.api import DepotAPI, Result
from depotman.exceptions import InvalidStateError, NotFoundError
from depotman.models import TransferStatus


pytestmark = pytest.mark.django_db

OIL = 1


@pytest.fixture
def api(depot):
    return DepotAPI(depot)


class TestResult:

    def test_ok(self):
        result = Result.ok(5)

        assert result.success
        assert result.unwrap() == 5
        assert result.as_dict() == {'success': True, 'data': 5, 'error': None}

    def test_failure(self):
        error = NotFoundError('TRANSFER_NOT_FOUND', transfer_id=3)
        result = Result.failure(error)

        assert not result.success
        with pytest.raises(NotFoundError):
            result.unwrap()
        assert result.as_dict()['error'] == {
            'type': 'NotFoundError',
            'code': 'TRANSFER_NOT_FOUND',
            'message': 'Transfer not found',
            'data': {'transfer_id': 3},
        }


class TestTransferLifecycle:
    """Each call returns an envelope instead of raising."""

    def test_full_lifecycle(self, api, stocked, store_b, actor):
        created = api.create_transfer(stocked, store_b, [{'product_id': OIL, 'quantity': 5}], actor)
        assert created.success
        transfer_id = created.data.pk

        assert api.approve_transfer(transfer_id, approved_by=8).data.status == TransferStatus.IN_TRANSIT
        assert api.receive_transfer(transfer_id, received_by=9).data.status == TransferStatus.RECEIVED

        totals = api.stock_by_location(OIL).unwrap()
        assert {row.location.code: row.quantity for row in totals} == {'store-a': 45, 'store-b': 5}

    def test_invalid_transition_is_failure(self, api, stocked, store_b, actor):
        transfer = api.create_transfer(stocked, store_b, [{'product_id': OIL, 'quantity': 5}], actor).data

        result = api.receive_transfer(transfer.pk, received_by=9)

        assert not result.success
        assert isinstance(result.error, InvalidStateError)
        assert result.as_dict()['error']['data']['current'] == 'pending'

    def test_validation_failure(self, api, stocked, actor):
        result = api.create_transfer(stocked, stocked, [{'product_id': OIL, 'quantity': 5}], actor)

        assert result.as_dict()['error']['code'] == 'SAME_LOCATION'

    def test_get_and_list(self, api, stocked, store_b, actor):
        transfer = api.create_transfer(stocked, store_b, [{'product_id': OIL, 'quantity': 5}], actor).data

        assert api.get_transfer(transfer.pk).data == transfer
        assert api.list_transfers(status='pending').data.total == 1
        assert api.get_transfer(999).error.code == 'TRANSFER_NOT_FOUND'

    def test_cancel(self, api, stocked, store_b, actor):
        transfer = api.create_transfer(stocked, store_b, [{'product_id': OIL, 'quantity': 5}], actor).data

        assert api.cancel_transfer(transfer.pk, cancelled_by=actor).data.status == TransferStatus.CANCELLED


class TestStockCalls:

    def test_record_and_list_movements(self, api, store_a, actor):
        assert api.record_movement(OIL, 'in', 3, actor, location=store_a).success

        page = api.list_movements(product_id=OIL).unwrap()
        assert page.total == 1

    def test_insufficient_is_failure(self, api, store_b, actor):
        result = api.record_movement(OIL, 'out', 3, actor, location=store_b)

        assert result.error.code == 'INSUFFICIENT_QUANTITY'
        assert result.as_dict()['error']['data']['requested'] == 3

    def test_location_stock_and_totals(self, api, stocked):
        assert api.location_stock(stocked).data.total == 1
        assert api.total_stock(OIL).data == 50
        assert [loc.code for loc in api.list_locations().data] == ['store-a']

    def test_unexpected_errors_propagate(self, api, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError('bug')

        monkeypatch.setattr(api.depot.projector, 'total', boom)

        with pytest.raises(RuntimeError):
            api.total_stock(OIL)
