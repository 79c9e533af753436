"""
Django Depotman — multi-location stock ledger and transfer engine.

Usage:
    from depotman import get_depot, DepotError

    depot = get_depot()
    depot.ledger.record_movement(42, 'in', 10, actor_id=7, location='main')
    depot.projector.total(42)  # 10
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name in ('Depot', 'get_depot'):
        from depotman import service
        return getattr(service, name)
    elif name in ('DepotAPI', 'Result'):
        from depotman import api
        return getattr(api, name)
    elif name in (
        'DepotError', 'ValidationError', 'NotFoundError', 'InvalidStateError',
        'InsufficientStockError', 'ConcurrencyConflictError',
    ):
        from depotman import exceptions
        return getattr(exceptions, name)
    elif name in ('Location', 'LocationStock', 'StockMovement', 'StockTransfer', 'StockTransferItem'):
        from depotman import models
        return getattr(models, name)
    elif name in ('LocationKind', 'MovementType', 'ReferenceType', 'TransferStatus'):
        from depotman.models import enums
        return getattr(enums, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'Depot',
    'get_depot',
    'DepotAPI',
    'Result',
    'DepotError',
    'ValidationError',
    'NotFoundError',
    'InvalidStateError',
    'InsufficientStockError',
    'ConcurrencyConflictError',
    'Location',
    'LocationStock',
    'StockMovement',
    'StockTransfer',
    'StockTransferItem',
    'LocationKind',
    'MovementType',
    'ReferenceType',
    'TransferStatus',
]

__version__ = '0.1.0'
