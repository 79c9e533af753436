"""
Transfer models — Moving stock between two locations.
"""

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from depotman.models.enums import TransferStatus

# status -> statuses reachable from it
TRANSITIONS = {
    TransferStatus.PENDING: frozenset({TransferStatus.IN_TRANSIT, TransferStatus.CANCELLED}),
    TransferStatus.IN_TRANSIT: frozenset({TransferStatus.RECEIVED}),
    TransferStatus.RECEIVED: frozenset(),
    TransferStatus.CANCELLED: frozenset(),
}


class StockTransfer(models.Model):
    """
    Request to move stock from one location to another.

    LIFECYCLE:

        ┌─────────┐  approve()  ┌────────────┐  receive()  ┌──────────┐
        │ PENDING │ ──────────► │ IN_TRANSIT │ ──────────► │ RECEIVED │
        └─────────┘             └────────────┘             └──────────┘
             │ cancel()
             ▼
        ┌───────────┐
        │ CANCELLED │
        └───────────┘

    Stock moves only on receive(): approved goods are on the road,
    counted neither at the source nor at the destination until then.
    RECEIVED and CANCELLED are terminal; the record no longer changes.
    """

    from_location = models.ForeignKey(
        'depotman.Location',
        on_delete=models.PROTECT,
        related_name='outgoing_transfers',
        verbose_name=_('From'),
    )
    to_location = models.ForeignKey(
        'depotman.Location',
        on_delete=models.PROTECT,
        related_name='incoming_transfers',
        verbose_name=_('To'),
    )
    transfer_number = models.CharField(
        max_length=40,
        unique=True,
        verbose_name=_('Transfer number'),
    )
    status = models.CharField(
        max_length=20,
        choices=TransferStatus.choices,
        default=TransferStatus.PENDING,
        db_index=True,
        verbose_name=_('Status'),
    )

    requested_by = models.PositiveBigIntegerField(verbose_name=_('Requested by'))
    approved_by = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Approved by'))
    received_by = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Received by'))
    cancelled_by = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Cancelled by'))

    request_date = models.DateField(default=timezone.localdate, verbose_name=_('Request date'))
    approval_date = models.DateField(null=True, blank=True, verbose_name=_('Approval date'))
    receive_date = models.DateField(null=True, blank=True, verbose_name=_('Receive date'))
    cancel_date = models.DateField(null=True, blank=True, verbose_name=_('Cancel date'))

    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'stock_transfers'
        verbose_name = _('Stock transfer')
        verbose_name_plural = _('Stock transfers')
        ordering = ['-created_at', '-id']
        constraints = [
            models.CheckConstraint(
                condition=~Q(from_location=F('to_location')),
                name='stock_transfer_distinct_locations',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'approval_date'], name='stock_transfer_status_idx'),
        ]

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[TransferStatus(self.status)]

    def can_transition_to(self, status) -> bool:
        return status in TRANSITIONS[TransferStatus(self.status)]

    def __str__(self) -> str:
        return f"{self.transfer_number} ({self.status})"


class StockTransferItem(models.Model):
    """
    One product/variant line of a transfer.

    Quantities only shrink along the workflow:
    received_quantity <= approved_quantity <= requested_quantity.
    """

    transfer = models.ForeignKey(
        StockTransfer,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('Transfer'),
    )
    product_id = models.PositiveBigIntegerField(verbose_name=_('Product'))
    variant_id = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Variant'))

    requested_quantity = models.PositiveIntegerField(verbose_name=_('Requested'))
    approved_quantity = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Approved'))
    received_quantity = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Received'))

    class Meta:
        db_table = 'stock_transfer_items'
        verbose_name = _('Stock transfer item')
        verbose_name_plural = _('Stock transfer items')
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['transfer', 'product_id', 'variant_id'],
                condition=Q(variant_id__isnull=False),
                name='unique_transfer_item_variant',
            ),
            models.UniqueConstraint(
                fields=['transfer', 'product_id'],
                condition=Q(variant_id__isnull=True),
                name='unique_transfer_item_product',
            ),
            models.CheckConstraint(
                condition=Q(requested_quantity__gt=0),
                name='transfer_item_requested_positive',
            ),
            models.CheckConstraint(
                condition=Q(approved_quantity__isnull=True)
                | Q(approved_quantity__lte=F('requested_quantity')),
                name='transfer_item_approved_lte_requested',
            ),
            models.CheckConstraint(
                condition=Q(received_quantity__isnull=True)
                | Q(approved_quantity__isnull=True, received_quantity__lte=F('requested_quantity'))
                | Q(received_quantity__lte=F('approved_quantity')),
                name='transfer_item_received_lte_approved',
            ),
        ]

    @property
    def key(self) -> tuple:
        return (self.product_id, self.variant_id)

    @property
    def ceiling(self) -> int:
        """Most that may still be shipped for this line."""
        if self.approved_quantity is not None:
            return self.approved_quantity
        return self.requested_quantity

    def __str__(self) -> str:
        variant = f"/{self.variant_id}" if self.variant_id else ""
        return f"#{self.product_id}{variant} x{self.requested_quantity}"
