"""
Location directory — create, look up and update locations.

Every other service resolves its ``location`` arguments through here, so a
location may be passed as a Location instance, a primary key or a code.
"""

import logging

from django.db import DEFAULT_DB_ALIAS, IntegrityError
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce

from depotman.db import atomic
from depotman.exceptions import NotFoundError, ValidationError
from depotman.models.enums import LocationKind
from depotman.models.location import Location

logger = logging.getLogger('depotman')

UPDATABLE_FIELDS = frozenset({
    'name', 'name_en', 'kind', 'address', 'city', 'governorate', 'phone',
    'manager_id', 'is_active', 'is_default', 'allow_negative_stock',
    'auto_reorder', 'print_receipts',
})


class LocationDirectory:
    """Location lookup and maintenance."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    @property
    def objects(self):
        return Location.objects.using(self.using)

    # ══════════════════════════════════════════════════════════════
    # LOOKUP
    # ══════════════════════════════════════════════════════════════

    def get(self, ref) -> Location:
        """
        Fetch a location by instance, pk or code.

        Raises:
            NotFoundError('LOCATION_NOT_FOUND')
        """
        if isinstance(ref, Location):
            return ref

        lookup = {'pk': ref} if isinstance(ref, int) else {'code': ref}
        try:
            return self.objects.get(**lookup)
        except Location.DoesNotExist:
            raise NotFoundError('LOCATION_NOT_FOUND', location=ref) from None

    def default(self) -> Location:
        """
        The location flagged is_default.

        Raises:
            NotFoundError('NO_DEFAULT_LOCATION')
        """
        location = self.objects.filter(is_default=True).order_by('pk').first()
        if location is None:
            raise NotFoundError('NO_DEFAULT_LOCATION')
        return location

    def resolve(self, ref) -> Location:
        """Like get(), but None means the default location."""
        if ref is None:
            return self.default()
        return self.get(ref)

    def allows_negative_stock(self, ref) -> bool:
        """Current policy as stored, not as cached on a passed-in instance."""
        pk = ref.pk if isinstance(ref, Location) else self.get(ref).pk
        return self.objects.values_list('allow_negative_stock', flat=True).get(pk=pk)

    def list(self, include_inactive: bool = False):
        """
        Locations ordered by name, annotated for overview screens.

        Annotations:
            product_count: distinct products with non-zero stock
            total_quantity: units held across all rows
        """
        qs = self.objects.annotate(
            product_count=Count(
                'stock__product_id',
                filter=Q(stock__quantity__gt=0) | Q(stock__quantity__lt=0),
                distinct=True,
            ),
            total_quantity=Coalesce(Sum('stock__quantity'), 0),
        ).order_by('name')

        if not include_inactive:
            qs = qs.filter(is_active=True)
        return qs

    # ══════════════════════════════════════════════════════════════
    # MAINTENANCE
    # ══════════════════════════════════════════════════════════════

    def create(self, code: str, name: str, kind: str = LocationKind.BRANCH, **fields) -> Location:
        """
        Create a location.

        Raises:
            ValidationError('DUPLICATE_LOCATION'): code or name already used
            ValidationError('UNKNOWN_FIELD'): unsupported keyword
        """
        self._check_fields(fields)
        if kind not in LocationKind.values:
            raise ValidationError('INVALID_INPUT', field='kind', value=kind)

        if self.objects.filter(Q(code=code) | Q(name=name)).exists():
            raise ValidationError('DUPLICATE_LOCATION', code=code, name=name)

        try:
            with atomic(self.using):
                if fields.get('is_default'):
                    self.objects.filter(is_default=True).update(is_default=False)
                location = self.objects.create(code=code, name=name, kind=kind, **fields)
        except IntegrityError:
            raise ValidationError('DUPLICATE_LOCATION', code=code, name=name) from None

        logger.info(
            "location.created",
            extra={"location": code, "kind": kind},
        )
        return location

    def update(self, ref, **changes) -> Location:
        """
        Update whitelisted fields of a location.

        Setting is_default=True clears the flag everywhere else.

        Raises:
            NotFoundError('LOCATION_NOT_FOUND')
            ValidationError('UNKNOWN_FIELD' | 'DUPLICATE_LOCATION')
        """
        self._check_fields(changes)
        if 'kind' in changes and changes['kind'] not in LocationKind.values:
            raise ValidationError('INVALID_INPUT', field='kind', value=changes['kind'])

        try:
            with atomic(self.using):
                location = self.objects.select_for_update().get(pk=self.get(ref).pk)

                if 'name' in changes and self.objects.filter(
                    name=changes['name']
                ).exclude(pk=location.pk).exists():
                    raise ValidationError('DUPLICATE_LOCATION', name=changes['name'])

                if changes.get('is_default'):
                    self.objects.exclude(pk=location.pk).filter(
                        is_default=True
                    ).update(is_default=False)

                for field, value in changes.items():
                    setattr(location, field, value)
                location.save(update_fields=[*changes, 'updated_at'])
        except IntegrityError:
            raise ValidationError('DUPLICATE_LOCATION', **changes) from None

        logger.info(
            "location.updated",
            extra={"location": location.code, "fields": sorted(changes)},
        )
        return location

    def _check_fields(self, fields: dict) -> None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError('UNKNOWN_FIELD', fields=sorted(unknown))
