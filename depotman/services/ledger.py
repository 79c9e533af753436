"""
Stock ledger — records movements and keeps location stock in step.

record_movement() is the single write path for quantities: it writes the
StockMovement row and applies the same signed effect to LocationStock
inside one transaction. Either both happen or neither does.
"""

import logging
from dataclasses import dataclass
from datetime import date

from django.db import DEFAULT_DB_ALIAS
from django.db.models import F, Sum
from django.db.models.functions import Coalesce

from depotman.db import atomic
from depotman.exceptions import InsufficientStockError, ValidationError
from depotman.models.enums import MovementType, ReferenceType
from depotman.models.location_stock import LocationStock
from depotman.models.movement import StockMovement
from depotman.pagination import Page, paginate
from depotman.services.registry import LocationStockRegistry, check_quantity

logger = logging.getLogger('depotman')

# Movement types whose sign is fixed; the caller passes a magnitude
SIGN_BY_TYPE = {
    MovementType.IN: 1,
    MovementType.RETURN: 1,
    MovementType.OUT: -1,
}

# Sentinel: "do not filter on variant"
ANY = object()


@dataclass(frozen=True)
class Discrepancy:
    """A stock row whose quantity disagrees with its ledger."""

    stock: LocationStock
    ledger_total: int

    @property
    def difference(self) -> int:
        return self.stock.quantity - self.ledger_total


def signed_effect(movement_type, quantity: int) -> int:
    """
    Effect of a movement on stock.

    Raises:
        ValidationError('INVALID_QUANTITY'): not an integer, zero, or a
            negative magnitude for a fixed-sign type
    """
    if not check_quantity(quantity):
        raise ValidationError('INVALID_QUANTITY', quantity=quantity)

    sign = SIGN_BY_TYPE.get(movement_type)
    if sign is None:
        return quantity
    if quantity < 0:
        raise ValidationError(
            'INVALID_QUANTITY',
            message=f"'{movement_type}' movements take a positive quantity",
            quantity=quantity,
        )
    return sign * quantity


def _coerce_choice(choices, value, code: str):
    try:
        return choices(value)
    except ValueError:
        raise ValidationError(code, value=value) from None


class StockLedger:
    """Append-only movement ledger."""

    def __init__(self, registry: LocationStockRegistry | None = None,
                 using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self.registry = registry or LocationStockRegistry(using)

    @property
    def objects(self):
        return StockMovement.objects.using(self.using)

    # ══════════════════════════════════════════════════════════════
    # WRITES
    # ══════════════════════════════════════════════════════════════

    def record_movement(self, product_id, movement_type, quantity: int, actor_id,
                        variant_id=None, location=None, reference_type=None,
                        reference_id=None, notes: str = '') -> StockMovement:
        """
        Record a movement and apply it to location stock.

        Args:
            product_id: Catalog product id
            movement_type: MovementType (or its value)
            quantity: magnitude for in/out/return, signed effect for
                adjustment/transfer; never zero
            actor_id: who did it
            variant_id: optional variant
            location: Location, pk or code; None = default location
            reference_type / reference_id: business event back-link

        Returns:
            The created StockMovement (its pk is the movement id)

        Raises:
            ValidationError: bad type, reference type or quantity
            NotFoundError: unknown location, product or variant
            InsufficientStockError: location would go negative

        Concurrency:
            - Runs under atomic(); the stock row is locked by adjust()
            - Any failure rolls back both the movement and the adjustment
        """
        movement_type = _coerce_choice(MovementType, movement_type, 'INVALID_MOVEMENT_TYPE')
        if reference_type:
            reference_type = _coerce_choice(ReferenceType, reference_type, 'INVALID_REFERENCE_TYPE')
        effect = signed_effect(movement_type, quantity)

        location = self.registry.directory.resolve(location)

        with atomic(self.using):
            new_quantity = self.registry.adjust(location, product_id, variant_id, effect, actor_id)
            stock = self.registry.get(location, product_id, variant_id)

            movement = self.objects.create(
                stock=stock,
                location=location,
                product_id=product_id,
                variant_id=variant_id,
                movement_type=movement_type,
                quantity=effect,
                reference_type=reference_type or '',
                reference_id=reference_id,
                notes=notes,
                actor_id=actor_id,
            )

        logger.info(
            "stock.movement.recorded",
            extra={
                "movement_id": movement.pk,
                "type": movement_type.value,
                "qty": effect,
                "location": location.code,
                "product_id": product_id,
                "variant_id": variant_id,
                "quantity_after": new_quantity,
                "reference": f"{reference_type}:{reference_id}" if reference_type else None,
            },
        )
        return movement

    def set_quantity(self, location, product_id, new_quantity: int, actor_id,
                     variant_id=None, notes: str = 'Stock level adjustment') -> StockMovement | None:
        """
        Stock count: bring a row to an absolute quantity.

        Records an adjustment movement for the difference.

        Returns:
            The adjustment movement, or None if the count already matched

        Raises:
            ValidationError('INVALID_QUANTITY'): count is not an integer
            InsufficientStockError('INSUFFICIENT_QUANTITY'): negative count
                at a location that does not allow negative stock

        Concurrency:
            - Runs under atomic()
            - Locks the row before reading the current quantity
        """
        check_quantity(new_quantity)
        if new_quantity < 0 and not self.registry.directory.allows_negative_stock(location):
            raise InsufficientStockError(
                'INSUFFICIENT_QUANTITY',
                location=self.registry.directory.get(location).code,
                product_id=product_id,
                variant_id=variant_id,
                counted=new_quantity,
            )

        with atomic(self.using):
            [locked] = self.registry.lock_rows([(location, product_id, variant_id)])
            delta = new_quantity - locked.quantity

            if delta == 0:
                return None

            return self.record_movement(
                product_id=product_id,
                variant_id=variant_id,
                location=locked.location_id,
                movement_type=MovementType.ADJUSTMENT,
                quantity=delta,
                reference_type=ReferenceType.ADJUSTMENT,
                actor_id=actor_id,
                notes=notes,
            )

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    def query_movements(self, product_id=None, variant_id=ANY, location=None,
                        movement_type=None, reference_type=None, reference_id=None,
                        date_from: date | None = None, date_to: date | None = None):
        """
        Movements matching the filters, newest first.

        Returns a lazy QuerySet: nothing is read until iterated, and it can
        be iterated again. Pure read, no locking.

        variant_id: ANY (default) ignores variants; None matches
        product-level movements only.
        """
        qs = self.objects.select_related('location')

        if product_id is not None:
            qs = qs.filter(product_id=product_id)
        if variant_id is not ANY:
            qs = qs.filter(variant_id=variant_id)
        if location is not None:
            qs = qs.filter(location=self.registry.directory.get(location))
        if movement_type:
            qs = qs.filter(movement_type=movement_type)
        if reference_type:
            qs = qs.filter(reference_type=reference_type)
        if reference_id is not None:
            qs = qs.filter(reference_id=reference_id)
        if date_from:
            qs = qs.filter(created_at__date__gte=date_from)
        if date_to:
            qs = qs.filter(created_at__date__lte=date_to)

        return qs.order_by('-created_at', '-id')

    def list_movements(self, page: int = 1, limit: int | None = None, **filters) -> Page:
        """Paginated query_movements()."""
        return paginate(self.query_movements(**filters), page=page, limit=limit)

    def balance(self, location, product_id, variant_id=None) -> int:
        """Signed sum of the ledger for one (location, product, variant)."""
        return self.objects.filter(
            location=self.registry.directory.get(location),
            product_id=product_id,
            variant_id=variant_id,
        ).aggregate(t=Coalesce(Sum('quantity'), 0))['t']

    # ══════════════════════════════════════════════════════════════
    # AUDIT
    # ══════════════════════════════════════════════════════════════

    def reconcile(self, location=None) -> list[Discrepancy]:
        """Stock rows whose quantity differs from the sum of their movements."""
        qs = LocationStock.objects.using(self.using).select_related('location')
        if location is not None:
            qs = qs.filter(location=self.registry.directory.get(location))

        qs = qs.annotate(
            ledger_sum=Coalesce(Sum('movements__quantity'), 0),
        ).exclude(quantity=F('ledger_sum')).order_by('pk')

        return [Discrepancy(stock=row, ledger_total=row.ledger_sum) for row in qs]

    def repair(self, location=None) -> int:
        """
        Recalculate every drifted row from its ledger.

        Returns:
            Number of rows repaired
        """
        discrepancies = self.reconcile(location)
        with atomic(self.using):
            for discrepancy in discrepancies:
                discrepancy.stock.recalculate()
        return len(discrepancies)
