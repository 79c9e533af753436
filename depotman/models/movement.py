"""
StockMovement model — Immutable ledger of quantity changes.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from depotman.models.enums import MovementType, ReferenceType

IMMUTABLE_MESSAGE = (
    "Stock movements are immutable. "
    "To correct one, record a new movement with the inverse effect."
)


class StockMovementQuerySet(models.QuerySet):
    """QuerySet that refuses bulk mutation of ledger rows."""

    def update(self, **kwargs):
        raise ValueError(IMMUTABLE_MESSAGE)

    def delete(self):
        raise ValueError(IMMUTABLE_MESSAGE)

    def for_reference(self, reference_type, reference_id):
        return self.filter(reference_type=reference_type, reference_id=reference_id)


class StockMovement(models.Model):
    """
    Immutable record of a quantity change at one location.

    Rules:
    - NEVER update() or delete()
    - Corrections are new movements with the inverse effect
    - ``quantity`` is stored signed: positive adds stock, negative removes it

    Rows are written by StockLedger.record_movement() in the same
    transaction as the LocationStock adjustment they describe.
    """

    stock = models.ForeignKey(
        'depotman.LocationStock',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Stock row'),
    )
    # Denormalized from ``stock`` for filtering
    location = models.ForeignKey(
        'depotman.Location',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Location'),
    )
    product_id = models.PositiveBigIntegerField(verbose_name=_('Product'))
    variant_id = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Variant'))

    movement_type = models.CharField(
        max_length=20,
        choices=MovementType.choices,
        verbose_name=_('Type'),
    )
    quantity = models.IntegerField(
        verbose_name=_('Quantity'),
        help_text=_('Positive = stock added, negative = stock removed'),
    )

    # Business event that caused the movement (sale, transfer, ...)
    reference_type = models.CharField(
        max_length=20,
        choices=ReferenceType.choices,
        blank=True,
        default='',
        verbose_name=_('Reference type'),
    )
    reference_id = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Reference'))

    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))
    actor_id = models.PositiveBigIntegerField(verbose_name=_('Actor'))
    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Created at'))

    objects = StockMovementQuerySet.as_manager()

    class Meta:
        db_table = 'stock_movements'
        verbose_name = _('Stock movement')
        verbose_name_plural = _('Stock movements')
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(
                condition=~Q(quantity=0),
                name='stock_movement_nonzero_quantity',
            ),
        ]
        indexes = [
            models.Index(fields=['location', 'product_id', 'variant_id'], name='stock_movement_tuple_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='stock_movement_ref_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(IMMUTABLE_MESSAGE)
        if not self.quantity:
            raise ValueError("Movement quantity must not be zero")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(IMMUTABLE_MESSAGE)

    def __str__(self) -> str:
        sign = '+' if self.quantity > 0 else ''
        ref = f" | {self.reference_type}:{self.reference_id}" if self.reference_type else ""
        return f"{sign}{self.quantity} {self.movement_type}{ref}"
