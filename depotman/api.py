"""
Depot API — caller-facing operations returning a uniform envelope.

Every method returns a Result. Domain failures (DepotError) become
``Result(success=False, error=...)``; anything else is a bug and
propagates.

Usage:
    from depotman.api import DepotAPI

    api = DepotAPI()
    result = api.receive_transfer(transfer_id, received_by=9)
    if not result.success:
        return JsonResponse(result.as_dict(), status=409)
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any

from depotman.exceptions import DepotError
from depotman.service import Depot, get_depot

logger = logging.getLogger('depotman')


@dataclass(frozen=True)
class Result:
    """Outcome of an API call: data on success, a DepotError otherwise."""

    success: bool
    data: Any = None
    error: DepotError | None = None

    @classmethod
    def ok(cls, data: Any = None) -> 'Result':
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: DepotError) -> 'Result':
        return cls(success=False, error=error)

    def unwrap(self) -> Any:
        """Data, or re-raise the error."""
        if self.error is not None:
            raise self.error
        return self.data

    def as_dict(self) -> dict[str, Any]:
        return {
            'success': self.success,
            'data': self.data if self.success else None,
            'error': self.error.as_dict() if self.error is not None else None,
        }


def enveloped(method):
    """Wrap a method's return value in Result; turn DepotError into a failure."""

    @functools.wraps(method)
    def wrapper(*args, **kwargs) -> Result:
        try:
            return Result.ok(method(*args, **kwargs))
        except DepotError as exc:
            logger.info(
                "api.failure",
                extra={"operation": method.__name__, "code": exc.code},
            )
            return Result.failure(exc)

    return wrapper


class DepotAPI:
    """Envelope-returning facade over a Depot."""

    def __init__(self, depot: Depot | None = None):
        self.depot = depot or get_depot()

    # Transfers

    @enveloped
    def create_transfer(self, from_location, to_location, items, requested_by,
                        notes: str = '', request_date=None):
        return self.depot.transfers.create(
            from_location, to_location, items, requested_by,
            notes=notes, request_date=request_date,
        )

    @enveloped
    def approve_transfer(self, transfer_id, approved_by, approved_items=None):
        return self.depot.transfers.approve(transfer_id, approved_by, approved_items)

    @enveloped
    def receive_transfer(self, transfer_id, received_by, received_items=None):
        return self.depot.transfers.receive(transfer_id, received_by, received_items)

    @enveloped
    def cancel_transfer(self, transfer_id, cancelled_by=None, reason: str = ''):
        return self.depot.transfers.cancel(transfer_id, cancelled_by, reason)

    @enveloped
    def get_transfer(self, transfer_id):
        return self.depot.transfers.get(transfer_id)

    @enveloped
    def list_transfers(self, **filters):
        return self.depot.transfers.list(**filters)

    # Movements

    @enveloped
    def record_movement(self, product_id, movement_type, quantity, actor_id, **kwargs):
        return self.depot.ledger.record_movement(product_id, movement_type, quantity, actor_id, **kwargs)

    @enveloped
    def list_movements(self, page: int = 1, limit: int | None = None, **filters):
        return self.depot.ledger.list_movements(page=page, limit=limit, **filters)

    # Stock

    @enveloped
    def location_stock(self, location, **options):
        return self.depot.registry.list(location, **options)

    @enveloped
    def total_stock(self, product_id, variant_id=None, location=None, include_variants: bool = False):
        return self.depot.projector.total(
            product_id, variant_id, location=location, include_variants=include_variants,
        )

    @enveloped
    def stock_by_location(self, product_id, variant_id=None, include_variants: bool = False):
        return self.depot.projector.by_location(product_id, variant_id, include_variants=include_variants)

    # Locations

    @enveloped
    def list_locations(self, include_inactive: bool = False):
        return list(self.depot.locations.list(include_inactive=include_inactive))
