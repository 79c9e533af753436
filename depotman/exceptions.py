"""
Exceptions for Depotman.

Every failure is a DepotError subclass carrying a structured code for
programmatic handling. The subclass tells the caller what kind of failure
it is; the code tells it which rule was broken.

Usage:
    try:
        depot.transfers.receive(transfer.pk, received_by=7)
    except InsufficientStockError as e:
        print(f"Only {e.available} left at {e.data['location']}")
    except InvalidStateError as e:
        print(e.data['current'])
"""

from typing import Any


class DepotError(Exception):
    """
    Base structured exception.

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    default_code = 'DEPOT_ERROR'
    _default_messages: dict[str, str] = {}

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        self.code = code or self.default_code
        self.message = message or self._default_messages.get(self.code, self.code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'type': type(self).__name__,
            'code': self.code,
            'message': self.message,
            'data': {
                k: v if isinstance(v, (int, float, bool, type(None), list, dict)) else str(v)
                for k, v in self.data.items()
            },
        }


class ValidationError(DepotError):
    """Malformed input or a business rule violated at the boundary."""

    default_code = 'INVALID_INPUT'
    _default_messages = {
        'INVALID_INPUT': 'Invalid input',
        'INVALID_QUANTITY': 'Invalid quantity',
        'INVALID_MOVEMENT_TYPE': 'Unknown movement type',
        'INVALID_REFERENCE_TYPE': 'Unknown reference type',
        'INVALID_PAGE': 'Invalid page or page size',
        'INVALID_THRESHOLDS': 'Maximum stock must not be below minimum stock',
        'SAME_LOCATION': 'Source and destination locations must differ',
        'LOCATION_INACTIVE': 'Location is inactive',
        'DUPLICATE_LOCATION': 'A location with this code or name already exists',
        'UNKNOWN_FIELD': 'Field cannot be updated',
        'EMPTY_TRANSFER': 'A transfer needs at least one item',
        'DUPLICATE_ITEM': 'Product/variant appears more than once',
        'UNKNOWN_ITEM': 'Product/variant is not part of this transfer',
        'QUANTITY_EXCEEDS_REQUESTED': 'Approved quantity exceeds requested quantity',
        'QUANTITY_EXCEEDS_APPROVED': 'Received quantity exceeds approved quantity',
        'RELEASE_EXCEEDS_RESERVED': 'Cannot release more than is reserved',
    }


class NotFoundError(DepotError):
    """Unknown product, variant, location or transfer."""

    default_code = 'NOT_FOUND'
    _default_messages = {
        'NOT_FOUND': 'Not found',
        'LOCATION_NOT_FOUND': 'Location not found',
        'NO_DEFAULT_LOCATION': 'No default location configured',
        'PRODUCT_NOT_FOUND': 'Product not found',
        'VARIANT_NOT_FOUND': 'Product variant not found',
        'TRANSFER_NOT_FOUND': 'Transfer not found',
    }


class InvalidStateError(DepotError):
    """A transition attempted from a state that does not permit it."""

    default_code = 'INVALID_STATUS'
    _default_messages = {
        'INVALID_STATUS': 'Invalid status for this operation',
    }


class InsufficientStockError(DepotError):
    """An adjustment would drive quantity negative without permission."""

    default_code = 'INSUFFICIENT_QUANTITY'
    _default_messages = {
        'INSUFFICIENT_QUANTITY': 'Insufficient quantity at location',
        'INSUFFICIENT_AVAILABLE': 'Requested quantity is not available',
    }

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)


class ConcurrencyConflictError(DepotError):
    """The store detected a serialization conflict. Retry the whole operation."""

    default_code = 'CONCURRENT_MODIFICATION'
    _default_messages = {
        'CONCURRENT_MODIFICATION': 'Concurrent modification detected, retry the operation',
    }
