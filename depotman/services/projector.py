"""
Aggregate stock queries — read-only totals across locations.

Nothing here is stored: every call sums LocationStock rows, so totals
always agree with the per-location quantities. No locking.
"""

from dataclasses import dataclass

from django.db import DEFAULT_DB_ALIAS
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce

from depotman.models.location import Location
from depotman.models.location_stock import LocationStock
from depotman.services.locations import LocationDirectory


@dataclass(frozen=True)
class LocationTotal:
    location: Location
    quantity: int
    reserved: int

    @property
    def available(self) -> int:
        return self.quantity - self.reserved


@dataclass(frozen=True)
class LocationSummary:
    location: Location
    product_count: int
    total_quantity: int
    low_stock_count: int


class AggregateStockProjector:
    """Stock totals derived from location rows."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS,
                 directory: LocationDirectory | None = None):
        self.using = using
        self.directory = directory or LocationDirectory(using)

    def _rows(self, product_id, variant_id=None, location=None, include_variants=False):
        qs = LocationStock.objects.using(self.using).for_product(
            product_id, variant_id, include_variants=include_variants,
        )
        if location is not None:
            qs = qs.at_location(self.directory.get(location))
        return qs

    def total(self, product_id, variant_id=None, location=None,
              include_variants: bool = False) -> int:
        """
        Units on hand.

        Args:
            product_id: Catalog product id
            variant_id: None = product-level row only
            location: restrict to one location (None = all)
            include_variants: sum the product row and every variant row

        Returns:
            0 when no row exists
        """
        return self._rows(product_id, variant_id, location, include_variants).aggregate(
            t=Coalesce(Sum('quantity'), 0)
        )['t']

    def reserved(self, product_id, variant_id=None, location=None,
                 include_variants: bool = False) -> int:
        return self._rows(product_id, variant_id, location, include_variants).aggregate(
            t=Coalesce(Sum('reserved_quantity'), 0)
        )['t']

    def available(self, product_id, variant_id=None, location=None,
                  include_variants: bool = False) -> int:
        """Units on hand minus reservations."""
        totals = self._rows(product_id, variant_id, location, include_variants).aggregate(
            quantity=Coalesce(Sum('quantity'), 0),
            reserved=Coalesce(Sum('reserved_quantity'), 0),
        )
        return totals['quantity'] - totals['reserved']

    def by_location(self, product_id, variant_id=None,
                    include_variants: bool = False) -> list[LocationTotal]:
        """Per-location breakdown, ordered by location name. Locations without a row are omitted."""
        rows = (
            self._rows(product_id, variant_id, include_variants=include_variants)
            .values('location')
            .annotate(
                quantity=Coalesce(Sum('quantity'), 0),
                reserved=Coalesce(Sum('reserved_quantity'), 0),
            )
            .order_by()
        )
        totals = {row['location']: row for row in rows}
        locations = Location.objects.using(self.using).filter(pk__in=totals).order_by('name')

        return [
            LocationTotal(
                location=location,
                quantity=totals[location.pk]['quantity'],
                reserved=totals[location.pk]['reserved'],
            )
            for location in locations
        ]

    def location_summary(self, location) -> LocationSummary:
        """Distinct stocked products and unit total at one location."""
        location = self.directory.get(location)
        stats = LocationStock.objects.using(self.using).at_location(location).aggregate(
            product_count=Count('product_id', filter=~Q(quantity=0), distinct=True),
            total_quantity=Coalesce(Sum('quantity'), 0),
        )
        low = LocationStock.objects.using(self.using).at_location(location).low_stock().count()

        return LocationSummary(
            location=location,
            product_count=stats['product_count'],
            total_quantity=stats['total_quantity'],
            low_stock_count=low,
        )
