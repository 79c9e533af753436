"""
Depotman Models.

Core models for multi-location stock:
- Location: Where stock is kept (with per-location policy)
- LocationStock: Quantity per location/product/variant (source of truth)
- StockMovement: Immutable ledger of changes
- StockTransfer / StockTransferItem: Inter-location transfer workflow
"""

from depotman.models.enums import LocationKind, MovementType, ReferenceType, TransferStatus
from depotman.models.location import Location
from depotman.models.location_stock import LocationStock
from depotman.models.movement import StockMovement
from depotman.models.transfer import TRANSITIONS, StockTransfer, StockTransferItem

__all__ = [
    'LocationKind',
    'MovementType',
    'ReferenceType',
    'TransferStatus',
    'TRANSITIONS',
    'Location',
    'LocationStock',
    'StockMovement',
    'StockTransfer',
    'StockTransferItem',
]
