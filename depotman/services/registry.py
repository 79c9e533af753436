"""
Location stock registry — per-location quantity rows.

The registry owns LocationStock. adjust() is the only code path that
changes ``quantity``, and it is meant to be called by the ledger while it
writes the matching movement (see services/ledger.py). Everything else
here reads, materializes rows, or edits reservation/threshold metadata.
"""

import logging
from dataclasses import dataclass

from django.db import DEFAULT_DB_ALIAS
from django.db.models import F
from django.utils import timezone

from depotman.adapters.catalog import get_catalog
from depotman.conf import depot_settings
from depotman.db import atomic
from depotman.exceptions import InsufficientStockError, NotFoundError, ValidationError
from depotman.models.location_stock import LocationStock
from depotman.pagination import Page, paginate
from depotman.protocols.catalog import CatalogBackend, ProductInfo
from depotman.services.locations import LocationDirectory

logger = logging.getLogger('depotman')

LIST_ORDERINGS = {
    'product_id': ('product_id', 'variant_id'),
    'quantity': ('quantity', 'product_id', 'variant_id'),
    '-quantity': ('-quantity', 'product_id', 'variant_id'),
    'last_updated': ('-last_updated', 'product_id', 'variant_id'),
}


def check_quantity(quantity, **context) -> int:
    """
    Quantities are plain integers; bool and float are refused.

    Raises:
        ValidationError('INVALID_QUANTITY')
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError('INVALID_QUANTITY', quantity=quantity, **context)
    return quantity


@dataclass(frozen=True)
class StockLevel:
    """A stock row joined with catalog display data."""

    stock: LocationStock
    product: ProductInfo | None

    @property
    def quantity(self) -> int:
        return self.stock.quantity

    @property
    def available(self) -> int:
        return self.stock.available


class LocationStockRegistry:
    """Per-location stock rows."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS,
                 directory: LocationDirectory | None = None,
                 catalog: CatalogBackend | None = None):
        self.using = using
        self.directory = directory or LocationDirectory(using)
        self._catalog = catalog

    @property
    def catalog(self) -> CatalogBackend:
        if self._catalog is None:
            self._catalog = get_catalog()
        return self._catalog

    @property
    def objects(self):
        return LocationStock.objects.using(self.using)

    # ══════════════════════════════════════════════════════════════
    # ROWS
    # ══════════════════════════════════════════════════════════════

    def check_product(self, product_id, variant_id=None) -> None:
        """
        Raises:
            NotFoundError('PRODUCT_NOT_FOUND' | 'VARIANT_NOT_FOUND')
        """
        if not depot_settings.VALIDATE_PRODUCTS:
            return
        if not self.catalog.product_exists(product_id):
            raise NotFoundError('PRODUCT_NOT_FOUND', product_id=product_id)
        if variant_id is not None and not self.catalog.variant_exists(product_id, variant_id):
            raise NotFoundError('VARIANT_NOT_FOUND', product_id=product_id, variant_id=variant_id)

    def get(self, location, product_id, variant_id=None) -> LocationStock | None:
        """Existing row, or None. Never creates."""
        location = self.directory.get(location)
        return self.objects.filter(
            location=location, product_id=product_id, variant_id=variant_id
        ).first()

    def get_or_init(self, location, product_id, variant_id=None) -> LocationStock:
        """
        Row for (location, product, variant), created at zero if absent.

        Idempotent.

        Raises:
            NotFoundError: unknown location, product or variant
        """
        location = self.directory.get(location)
        self.check_product(product_id, variant_id)

        with atomic(self.using):
            stock, created = self.objects.get_or_create(
                location=location,
                product_id=product_id,
                variant_id=variant_id,
            )

        if created:
            logger.debug(
                "stock.row.initialized",
                extra={
                    "location": location.code,
                    "product_id": product_id,
                    "variant_id": variant_id,
                },
            )
        return stock

    def lock_rows(self, keys) -> list[LocationStock]:
        """
        Materialize and lock several rows in primary-key order.

        Args:
            keys: iterable of (location, product_id, variant_id)

        Must run inside an outer transaction; the locks are held until it ends.
        """
        pks = sorted({self.get_or_init(*key).pk for key in keys})
        return list(
            self.objects.select_for_update().filter(pk__in=pks).order_by('pk')
        )

    # ══════════════════════════════════════════════════════════════
    # MUTATION
    # ══════════════════════════════════════════════════════════════

    def adjust(self, location, product_id, variant_id, delta: int, actor_id) -> int:
        """
        Change quantity by ``delta``.

        Returns:
            New quantity

        Raises:
            ValidationError('INVALID_QUANTITY'): delta == 0
            NotFoundError: unknown location, product or variant
            InsufficientStockError('INSUFFICIENT_QUANTITY'): result would be
                negative and the location does not allow negative stock

        Concurrency:
            - Runs under atomic()
            - Uses select_for_update() on the row
            - Checks the resulting quantity after the lock
        """
        if not check_quantity(delta):
            raise ValidationError('INVALID_QUANTITY', quantity=delta)

        location = self.directory.get(location)

        with atomic(self.using):
            row = self.get_or_init(location, product_id, variant_id)
            locked = self.objects.select_for_update().get(pk=row.pk)
            new_quantity = locked.quantity + delta

            if new_quantity < 0 and not self.directory.allows_negative_stock(location.pk):
                raise InsufficientStockError(
                    'INSUFFICIENT_QUANTITY',
                    location=location.code,
                    product_id=product_id,
                    variant_id=variant_id,
                    available=locked.quantity,
                    requested=-delta,
                )

            self.objects.filter(pk=locked.pk).update(
                quantity=F('quantity') + delta,
                last_updated=timezone.now(),
            )

        logger.info(
            "stock.adjusted",
            extra={
                "location": location.code,
                "product_id": product_id,
                "variant_id": variant_id,
                "delta": delta,
                "quantity": new_quantity,
                "actor_id": actor_id,
            },
        )
        return new_quantity

    def set_thresholds(self, location, product_id, variant_id=None,
                       min_stock: int | None = None, max_stock: int | None = None) -> LocationStock:
        """
        Set min/max stock levels for a row. None leaves a value unchanged.

        Raises:
            ValidationError('INVALID_THRESHOLDS'): negative values or max < min
        """
        with atomic(self.using):
            row = self.get_or_init(location, product_id, variant_id)
            locked = self.objects.select_for_update().get(pk=row.pk)

            new_min = locked.min_stock if min_stock is None else min_stock
            new_max = locked.max_stock if max_stock is None else max_stock
            if new_min < 0 or (new_max is not None and (new_max < 0 or new_max < new_min)):
                raise ValidationError('INVALID_THRESHOLDS', min_stock=new_min, max_stock=new_max)

            locked.min_stock = new_min
            locked.max_stock = new_max
            locked.save(update_fields=['min_stock', 'max_stock'])
            return locked

    def reserve(self, location, product_id, quantity: int, variant_id=None) -> LocationStock:
        """
        Set units aside (reserved_quantity += quantity).

        Raises:
            ValidationError('INVALID_QUANTITY'): quantity <= 0
            InsufficientStockError('INSUFFICIENT_AVAILABLE'): not enough unreserved units
        """
        if check_quantity(quantity) <= 0:
            raise ValidationError('INVALID_QUANTITY', quantity=quantity)

        with atomic(self.using):
            row = self.get_or_init(location, product_id, variant_id)
            locked = self.objects.select_for_update().get(pk=row.pk)

            if locked.available < quantity:
                raise InsufficientStockError(
                    'INSUFFICIENT_AVAILABLE',
                    location=locked.location.code,
                    product_id=product_id,
                    variant_id=variant_id,
                    available=locked.available,
                    requested=quantity,
                )

            locked.reserved_quantity += quantity
            locked.save(update_fields=['reserved_quantity'])

        logger.info(
            "stock.reserved",
            extra={"stock_id": locked.pk, "qty": quantity},
        )
        return locked

    def release(self, location, product_id, quantity: int, variant_id=None) -> LocationStock:
        """
        Give reserved units back (reserved_quantity -= quantity).

        Raises:
            ValidationError('INVALID_QUANTITY' | 'RELEASE_EXCEEDS_RESERVED')
        """
        if check_quantity(quantity) <= 0:
            raise ValidationError('INVALID_QUANTITY', quantity=quantity)

        with atomic(self.using):
            row = self.get_or_init(location, product_id, variant_id)
            locked = self.objects.select_for_update().get(pk=row.pk)

            if locked.reserved_quantity < quantity:
                raise ValidationError(
                    'RELEASE_EXCEEDS_RESERVED',
                    reserved=locked.reserved_quantity,
                    requested=quantity,
                )

            locked.reserved_quantity -= quantity
            locked.save(update_fields=['reserved_quantity'])

        logger.info(
            "stock.released",
            extra={"stock_id": locked.pk, "qty": quantity},
        )
        return locked

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    def list(self, location, search: str | None = None, include_empty: bool = True,
             low_stock_only: bool = False, order_by: str = 'product_id',
             page: int = 1, limit: int | None = None) -> Page:
        """
        Stock rows at a location, joined with catalog data for display.

        Args:
            location: Location, pk or code
            search: name/SKU search, resolved through the catalog
            include_empty: keep rows with quantity 0
            low_stock_only: only rows at or below min_stock
            order_by: one of LIST_ORDERINGS

        Returns:
            Page of StockLevel
        """
        if order_by not in LIST_ORDERINGS:
            raise ValidationError('INVALID_INPUT', field='order_by', value=order_by)

        location = self.directory.get(location)
        qs = self.objects.at_location(location).select_related('location')

        if search:
            matches = self.catalog.search_products(search, limit=depot_settings.MAX_PAGE_SIZE)
            qs = qs.filter(product_id__in={info.product_id for info in matches})

        if not include_empty:
            qs = qs.non_empty()

        if low_stock_only:
            qs = qs.low_stock()

        qs = qs.order_by(*LIST_ORDERINGS[order_by])

        return paginate(qs, page=page, limit=limit, transform=self._to_level)

    def low_stock(self, location=None):
        """Rows at or below their configured minimum (all locations if None)."""
        qs = self.objects.low_stock().select_related('location')
        if location is not None:
            qs = qs.at_location(self.directory.get(location))
        return qs.order_by('location__name', 'product_id', 'variant_id')

    def _to_level(self, stock: LocationStock) -> StockLevel:
        return StockLevel(
            stock=stock,
            product=self.catalog.get_product_info(stock.product_id, stock.variant_id),
        )
