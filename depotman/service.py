"""
Depot — the entry point that wires the stock components together.

Usage:
    from depotman import get_depot

    depot = get_depot()
    depot.ledger.record_movement(42, 'in', 10, actor_id=7, location='main')
    transfer = depot.transfers.create('main', 'branch-2', [{'product_id': 42, 'quantity': 4}], requested_by=7)
    depot.transfers.approve(transfer.pk, approved_by=7)
    depot.transfers.receive(transfer.pk, received_by=9)
    depot.projector.total(42)  # 10

Components share one database alias and one catalog. Build a separate
Depot for another alias, or pass a catalog explicitly in tests.
"""

import threading

from django.db import DEFAULT_DB_ALIAS

from depotman.protocols.catalog import CatalogBackend
from depotman.services.ledger import StockLedger
from depotman.services.locations import LocationDirectory
from depotman.services.projector import AggregateStockProjector
from depotman.services.registry import LocationStockRegistry
from depotman.services.transfers import TransferWorkflow


class Depot:
    """
    Composition of the stock components.

    Attributes:
        locations: LocationDirectory
        registry: LocationStockRegistry
        ledger: StockLedger
        transfers: TransferWorkflow
        projector: AggregateStockProjector
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS, catalog: CatalogBackend | None = None):
        self.using = using
        self.locations = LocationDirectory(using)
        self.registry = LocationStockRegistry(using, directory=self.locations, catalog=catalog)
        self.ledger = StockLedger(self.registry, using=using)
        self.transfers = TransferWorkflow(self.ledger, using=using)
        self.projector = AggregateStockProjector(using, directory=self.locations)

    @property
    def catalog(self) -> CatalogBackend:
        return self.registry.catalog

    def __repr__(self) -> str:
        return f"<Depot using={self.using!r}>"


_default_depot: Depot | None = None
_lock = threading.Lock()


def get_depot() -> Depot:
    """Default Depot on the default alias with the configured catalog."""
    global _default_depot
    if _default_depot is None:
        with _lock:
            if _default_depot is None:
                _default_depot = Depot()
    return _default_depot


def reset_depot() -> None:
    """Drop the default Depot (useful for tests)."""
    global _default_depot
    with _lock:
        _default_depot = None
