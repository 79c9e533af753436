"""
LocationStock model — Quantity of a product/variant at one location.
"""

import logging

from django.db import models
from django.db.models import F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger('depotman')


class LocationStockQuerySet(models.QuerySet):
    """QuerySet with helper filters for stock rows."""

    def for_product(self, product_id, variant_id=None, include_variants=False):
        """
        Rows of one product.

        variant_id=None matches the product-level row only, unless
        include_variants is set, which matches every variant as well.
        """
        qs = self.filter(product_id=product_id)
        if include_variants:
            return qs
        return qs.filter(variant_id=variant_id)

    def at_location(self, location):
        return self.filter(location=location)

    def non_empty(self):
        return self.exclude(quantity=0)

    def low_stock(self):
        """Rows at or below their configured minimum."""
        return self.filter(min_stock__gt=0, quantity__lte=F('min_stock'))


class LocationStock(models.Model):
    """
    Quantity of a product (or variant) at a location.

    Source of truth for stock. Rows are created on first touch with
    quantity zero and are never deleted.

    ``quantity`` only changes through the registry's adjust(), which the
    ledger calls while writing the matching StockMovement, so the value
    always equals the signed sum of this row's movements. Use
    recalculate() for audit/correction.
    """

    location = models.ForeignKey(
        'depotman.Location',
        on_delete=models.PROTECT,
        related_name='stock',
        verbose_name=_('Location'),
    )
    product_id = models.PositiveBigIntegerField(verbose_name=_('Product'))
    variant_id = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Variant'))

    quantity = models.IntegerField(default=0, verbose_name=_('Quantity'))
    reserved_quantity = models.PositiveIntegerField(default=0, verbose_name=_('Reserved'))
    min_stock = models.PositiveIntegerField(default=0, verbose_name=_('Minimum stock'))
    max_stock = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Maximum stock'))

    last_updated = models.DateTimeField(default=timezone.now, verbose_name=_('Last updated'))
    created_at = models.DateTimeField(auto_now_add=True)

    objects = LocationStockQuerySet.as_manager()

    class Meta:
        db_table = 'location_stock'
        verbose_name = _('Location stock')
        verbose_name_plural = _('Location stock')
        ordering = ['location_id', 'product_id', 'variant_id']
        constraints = [
            models.UniqueConstraint(
                fields=['location', 'product_id', 'variant_id'],
                condition=Q(variant_id__isnull=False),
                name='unique_location_stock_variant',
            ),
            models.UniqueConstraint(
                fields=['location', 'product_id'],
                condition=Q(variant_id__isnull=True),
                name='unique_location_stock_product',
            ),
        ]
        indexes = [
            models.Index(fields=['product_id', 'variant_id'], name='location_stock_product_idx'),
        ]

    # ══════════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════════

    @property
    def available(self) -> int:
        """Quantity not set aside by reservations."""
        return self.quantity - self.reserved_quantity

    @property
    def is_low(self) -> bool:
        return self.min_stock > 0 and self.quantity <= self.min_stock

    @property
    def key(self) -> tuple:
        return (self.location_id, self.product_id, self.variant_id)

    # ══════════════════════════════════════════════════════════════
    # METHODS
    # ══════════════════════════════════════════════════════════════

    def ledger_total(self) -> int:
        """Signed sum of this row's movements."""
        return self.movements.aggregate(t=Coalesce(Sum('quantity'), 0))['t']

    def recalculate(self) -> int:
        """
        Recalculate quantity from the ledger.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        Returns:
            New calculated quantity
        """
        total = self.ledger_total()

        if total != self.quantity:
            old = self.quantity
            self.quantity = total
            self.last_updated = timezone.now()
            self.save(update_fields=['quantity', 'last_updated'])

            logger.warning(
                f"LocationStock {self.pk} recalculated: {old} → {total} "
                f"(diff: {total - old})"
            )

        return total

    def __str__(self) -> str:
        variant = f"/{self.variant_id}" if self.variant_id else ""
        return f"#{self.product_id}{variant} @ {self.location_id}: {self.quantity}"
