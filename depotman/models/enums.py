"""
Enums for Depotman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class LocationKind(models.TextChoices):
    """Role of a location in the store network."""
    MAIN = 'main', _('Main store')
    BRANCH = 'branch', _('Branch')
    WAREHOUSE = 'warehouse', _('Warehouse')


class MovementType(models.TextChoices):
    """
    Kind of quantity change.

    IN / RETURN:           positive magnitude, increases stock
    OUT:                   positive magnitude, decreases stock
    ADJUSTMENT / TRANSFER: caller supplies the signed effect
    """
    IN = 'in', _('In')
    OUT = 'out', _('Out')
    TRANSFER = 'transfer', _('Transfer')
    ADJUSTMENT = 'adjustment', _('Adjustment')
    RETURN = 'return', _('Return')


class ReferenceType(models.TextChoices):
    """Business event a movement points back to."""
    SALE = 'sale', _('Sale')
    PURCHASE = 'purchase', _('Purchase')
    TRANSFER = 'transfer', _('Transfer')
    ADJUSTMENT = 'adjustment', _('Adjustment')


class TransferStatus(models.TextChoices):
    """Transfer lifecycle status."""
    PENDING = 'pending', _('Pending')            # Requested, nothing moved
    IN_TRANSIT = 'in_transit', _('In transit')   # Approved, goods on the road
    RECEIVED = 'received', _('Received')         # Stock moved, terminal
    CANCELLED = 'cancelled', _('Cancelled')      # Abandoned before approval, terminal
