"""
Transfer workflow — moving stock between locations.

    create()  → PENDING      record of intent, no stock moves
    approve() → IN_TRANSIT   quantities confirmed, no stock moves
    receive() → RECEIVED     stock leaves the source and enters the
                             destination, all items in one transaction
    cancel()  → CANCELLED    only from PENDING

Each transition locks the transfer row and checks its current status
after the lock, so a transfer can be received at most once.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, timedelta

from django.db import DEFAULT_DB_ALIAS, IntegrityError
from django.db.models import Count
from django.utils import timezone

from depotman.conf import depot_settings
from depotman.db import atomic
from depotman.exceptions import (
    ConcurrencyConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from depotman.models.enums import MovementType, ReferenceType, TransferStatus
from depotman.models.transfer import TRANSITIONS, StockTransfer, StockTransferItem
from depotman.pagination import Page, paginate
from depotman.services.ledger import StockLedger
from depotman.services.registry import check_quantity

logger = logging.getLogger('depotman')


@dataclass(frozen=True)
class TransferLine:
    """
    A (product, variant, quantity) line passed into the workflow.

    Construction fails with ValidationError('INVALID_QUANTITY') unless
    quantity is an int.
    """

    product_id: int
    quantity: int
    variant_id: int | None = None

    def __post_init__(self):
        check_quantity(self.quantity, product_id=self.product_id, variant_id=self.variant_id)

    @property
    def key(self) -> tuple:
        return (self.product_id, self.variant_id)

    @classmethod
    def coerce(cls, value) -> 'TransferLine':
        """Accept a TransferLine or a mapping with the same keys."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            try:
                return cls(
                    product_id=value['product_id'],
                    quantity=value['quantity'],
                    variant_id=value.get('variant_id'),
                )
            except KeyError as exc:
                raise ValidationError('INVALID_INPUT', field=exc.args[0]) from None
        raise ValidationError('INVALID_INPUT', value=value)


def _lines(values) -> list[TransferLine]:
    """Coerce lines and reject repeated (product, variant) keys."""
    lines = [TransferLine.coerce(value) for value in values]
    seen = set()
    for line in lines:
        if line.key in seen:
            raise ValidationError('DUPLICATE_ITEM', product_id=line.product_id, variant_id=line.variant_id)
        seen.add(line.key)
    return lines


class TransferWorkflow:
    """Transfer state machine."""

    def __init__(self, ledger: StockLedger | None = None, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self.ledger = ledger or StockLedger(using=using)
        self.registry = self.ledger.registry
        self.directory = self.registry.directory

    @property
    def objects(self):
        return StockTransfer.objects.using(self.using)

    # ══════════════════════════════════════════════════════════════
    # TRANSITIONS
    # ══════════════════════════════════════════════════════════════

    def create(self, from_location, to_location, items, requested_by,
               notes: str = '', request_date: date | None = None) -> StockTransfer:
        """
        Create a pending transfer.

        Args:
            from_location / to_location: Location, pk or code
            items: TransferLine objects or mappings with
                product_id, quantity and optional variant_id
            requested_by: actor id

        Raises:
            ValidationError: same location, inactive location, no items,
                duplicate items, quantity <= 0
            NotFoundError: unknown location, product or variant
            ConcurrencyConflictError: transfer number taken concurrently
        """
        source = self.directory.get(from_location)
        destination = self.directory.get(to_location)

        if source.pk == destination.pk:
            raise ValidationError('SAME_LOCATION', location=source.code)
        for location in (source, destination):
            if not location.is_active:
                raise ValidationError('LOCATION_INACTIVE', location=location.code)

        lines = _lines(items)
        if not lines:
            raise ValidationError('EMPTY_TRANSFER')
        for line in lines:
            if line.quantity <= 0:
                raise ValidationError(
                    'INVALID_QUANTITY',
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    quantity=line.quantity,
                )
            self.registry.check_product(line.product_id, line.variant_id)

        request_date = request_date or timezone.localdate()
        number = None

        try:
            with atomic(self.using):
                number = self._next_transfer_number(request_date)
                transfer = self.objects.create(
                    from_location=source,
                    to_location=destination,
                    transfer_number=number,
                    requested_by=requested_by,
                    request_date=request_date,
                    notes=notes,
                )
                StockTransferItem.objects.using(self.using).bulk_create([
                    StockTransferItem(
                        transfer=transfer,
                        product_id=line.product_id,
                        variant_id=line.variant_id,
                        requested_quantity=line.quantity,
                    )
                    for line in lines
                ])
        except IntegrityError as exc:
            # Only a number taken by a concurrent create is worth retrying
            if number is not None and self.objects.filter(transfer_number=number).exists():
                raise ConcurrencyConflictError(transfer_number=number, error=str(exc)) from exc
            raise

        logger.info(
            "transfer.created",
            extra={
                "transfer": transfer.transfer_number,
                "from": source.code,
                "to": destination.code,
                "items": len(lines),
                "requested_by": requested_by,
            },
        )
        return transfer

    def approve(self, transfer_id, approved_by, approved_items=None) -> StockTransfer:
        """
        Approve a pending transfer and put it in transit.

        Args:
            approved_items: optional lines overriding approved quantities;
                items not listed are approved as requested

        Raises:
            InvalidStateError: transfer is not pending
            ValidationError: override for an unknown item, or outside
                0..requested_quantity
        """
        with atomic(self.using):
            transfer = self._lock(transfer_id)
            self._check_transition(transfer, TransferStatus.IN_TRANSIT)

            items = list(transfer.items.all())
            overrides = self._overrides(items, approved_items)

            for item in items:
                quantity = overrides.get(item.key, item.requested_quantity)
                if quantity < 0:
                    raise ValidationError('INVALID_QUANTITY', product_id=item.product_id, quantity=quantity)
                if quantity > item.requested_quantity:
                    raise ValidationError(
                        'QUANTITY_EXCEEDS_REQUESTED',
                        product_id=item.product_id,
                        variant_id=item.variant_id,
                        requested=item.requested_quantity,
                        approved=quantity,
                    )
                item.approved_quantity = quantity

            StockTransferItem.objects.using(self.using).bulk_update(items, ['approved_quantity'])

            transfer.status = TransferStatus.IN_TRANSIT
            transfer.approved_by = approved_by
            transfer.approval_date = timezone.localdate()
            transfer.save(update_fields=['status', 'approved_by', 'approval_date', 'updated_at'])

        logger.info(
            "transfer.approved",
            extra={"transfer": transfer.transfer_number, "approved_by": approved_by},
        )
        return transfer

    def receive(self, transfer_id, received_by, received_items=None) -> StockTransfer:
        """
        Receive an in-transit transfer: the only step that moves stock.

        For every item: received = override (0 allowed), else approved,
        else requested. Each non-zero quantity is written as an ``out``
        movement at the source and an ``in`` movement at the destination,
        both referencing the transfer.

        Raises:
            InvalidStateError: transfer is not in transit
            ValidationError: override for an unknown item, negative, or
                above the approved quantity
            InsufficientStockError: any item would drive the source
                negative; nothing of the transfer is applied

        Concurrency:
            - One atomic() for the whole transfer
            - Locks the transfer row, then every source and destination
              stock row in primary-key order
        """
        with atomic(self.using):
            transfer = self._lock(transfer_id)
            self._check_transition(transfer, TransferStatus.RECEIVED)

            items = list(transfer.items.all())
            overrides = self._overrides(items, received_items)

            for item in items:
                quantity = overrides.get(item.key, item.ceiling)
                if quantity < 0:
                    raise ValidationError('INVALID_QUANTITY', product_id=item.product_id, quantity=quantity)
                if quantity > item.ceiling:
                    raise ValidationError(
                        'QUANTITY_EXCEEDS_APPROVED',
                        product_id=item.product_id,
                        variant_id=item.variant_id,
                        approved=item.ceiling,
                        received=quantity,
                    )
                item.received_quantity = quantity

            moving = [item for item in items if item.received_quantity]
            self.registry.lock_rows(
                (location, item.product_id, item.variant_id)
                for item in moving
                for location in (transfer.from_location, transfer.to_location)
            )

            for item in moving:
                for location, movement_type in (
                    (transfer.from_location, MovementType.OUT),
                    (transfer.to_location, MovementType.IN),
                ):
                    self.ledger.record_movement(
                        product_id=item.product_id,
                        variant_id=item.variant_id,
                        location=location,
                        movement_type=movement_type,
                        quantity=item.received_quantity,
                        reference_type=ReferenceType.TRANSFER,
                        reference_id=transfer.pk,
                        actor_id=received_by,
                        notes=f"Transfer {transfer.transfer_number}",
                    )

            StockTransferItem.objects.using(self.using).bulk_update(items, ['received_quantity'])

            transfer.status = TransferStatus.RECEIVED
            transfer.received_by = received_by
            transfer.receive_date = timezone.localdate()
            transfer.save(update_fields=['status', 'received_by', 'receive_date', 'updated_at'])

        logger.info(
            "transfer.received",
            extra={
                "transfer": transfer.transfer_number,
                "received_by": received_by,
                "units": sum(item.received_quantity for item in items),
            },
        )
        return transfer

    def cancel(self, transfer_id, cancelled_by=None, reason: str = '') -> StockTransfer:
        """
        Cancel a pending transfer. No stock effect.

        Raises:
            InvalidStateError: transfer is not pending
        """
        with atomic(self.using):
            transfer = self._lock(transfer_id)
            self._check_transition(transfer, TransferStatus.CANCELLED)

            transfer.status = TransferStatus.CANCELLED
            transfer.cancelled_by = cancelled_by
            transfer.cancel_date = timezone.localdate()
            fields = ['status', 'cancelled_by', 'cancel_date', 'updated_at']
            if reason:
                transfer.notes = f"{transfer.notes}\nCancelled: {reason}".strip()
                fields.append('notes')
            transfer.save(update_fields=fields)

        logger.info(
            "transfer.cancelled",
            extra={"transfer": transfer.transfer_number, "cancelled_by": cancelled_by, "reason": reason},
        )
        return transfer

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    def get(self, transfer_id) -> StockTransfer:
        """
        Transfer with locations and items loaded.

        Raises:
            NotFoundError('TRANSFER_NOT_FOUND')
        """
        try:
            return (
                self.objects
                .select_related('from_location', 'to_location')
                .prefetch_related('items')
                .get(pk=transfer_id)
            )
        except StockTransfer.DoesNotExist:
            raise NotFoundError('TRANSFER_NOT_FOUND', transfer_id=transfer_id) from None

    def list(self, from_location=None, to_location=None, status=None,
             date_from: date | None = None, date_to: date | None = None,
             page: int = 1, limit: int | None = None) -> Page:
        """Transfers newest first, annotated with item_count."""
        qs = self.objects.select_related('from_location', 'to_location').annotate(
            item_count=Count('items'),
        )

        if from_location is not None:
            qs = qs.filter(from_location=self.directory.get(from_location))
        if to_location is not None:
            qs = qs.filter(to_location=self.directory.get(to_location))
        if status:
            if status not in TransferStatus.values:
                raise ValidationError('INVALID_INPUT', field='status', value=status)
            qs = qs.filter(status=status)
        if date_from:
            qs = qs.filter(request_date__gte=date_from)
        if date_to:
            qs = qs.filter(request_date__lte=date_to)

        return paginate(qs.order_by('-created_at', '-id'), page=page, limit=limit)

    def stale(self, older_than_days: int | None = None):
        """In-transit transfers approved more than N days ago. Report only."""
        if older_than_days is None:
            older_than_days = depot_settings.STALE_TRANSFER_DAYS
        cutoff = timezone.localdate() - timedelta(days=older_than_days)
        return (
            self.objects
            .select_related('from_location', 'to_location')
            .filter(status=TransferStatus.IN_TRANSIT, approval_date__lt=cutoff)
            .order_by('approval_date', 'id')
        )

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    def _lock(self, transfer_id) -> StockTransfer:
        try:
            return (
                self.objects
                .select_for_update()
                .select_related('from_location', 'to_location')
                .get(pk=transfer_id)
            )
        except StockTransfer.DoesNotExist:
            raise NotFoundError('TRANSFER_NOT_FOUND', transfer_id=transfer_id) from None

    def _check_transition(self, transfer: StockTransfer, target: TransferStatus) -> None:
        if not transfer.can_transition_to(target):
            raise InvalidStateError(
                current=transfer.status,
                expected=sorted(status.value for status, targets in TRANSITIONS.items() if target in targets),
                transfer=transfer.transfer_number,
            )

    def _overrides(self, items, lines) -> dict:
        """Map item key -> override quantity; every line must name an item."""
        if not lines:
            return {}
        keys = {item.key for item in items}
        overrides = {}
        for line in _lines(lines):
            if line.key not in keys:
                raise ValidationError('UNKNOWN_ITEM', product_id=line.product_id, variant_id=line.variant_id)
            overrides[line.key] = line.quantity
        return overrides

    def _next_transfer_number(self, day: date) -> str:
        prefix = f"{depot_settings.TRANSFER_NUMBER_PREFIX}-{day:%Y%m%d}-"
        count = self.objects.filter(transfer_number__startswith=prefix).count()
        return f"{prefix}{count + 1:03d}"
