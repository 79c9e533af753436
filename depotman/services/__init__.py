"""
Depot services — one class per component.

    from depotman.services import StockLedger, TransferWorkflow

Most callers go through depotman.service.Depot, which wires them together.
"""

from depotman.services.ledger import Discrepancy, StockLedger
from depotman.services.locations import LocationDirectory
from depotman.services.projector import AggregateStockProjector, LocationSummary, LocationTotal
from depotman.services.registry import LocationStockRegistry, StockLevel
from depotman.services.transfers import TransferLine, TransferWorkflow

__all__ = [
    'AggregateStockProjector',
    'Discrepancy',
    'LocationDirectory',
    'LocationStockRegistry',
    'LocationSummary',
    'LocationTotal',
    'StockLedger',
    'StockLevel',
    'TransferLine',
    'TransferWorkflow',
]
