"""
Location model — Where stock is kept.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from depotman.models.enums import LocationKind


class Location(models.Model):
    """
    A store, branch or warehouse holding stock.

    Policy flags are plain columns rather than a settings blob, so the
    registry can read ``allow_negative_stock`` without parsing anything.

    Examples:
        Location.objects.create(code='downtown', name='Downtown', kind=LocationKind.BRANCH)
        Location.objects.create(code='central', name='Central Warehouse',
                                kind=LocationKind.WAREHOUSE, allow_negative_stock=True)
    """

    code = models.SlugField(
        unique=True,
        max_length=50,
        verbose_name=_('Code'),
        help_text=_('Unique identifier (e.g. downtown, central)'),
    )
    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name=_('Name'),
    )
    name_en = models.CharField(max_length=100, blank=True, default='', verbose_name=_('English name'))
    kind = models.CharField(
        max_length=20,
        choices=LocationKind.choices,
        default=LocationKind.BRANCH,
        verbose_name=_('Kind'),
    )

    address = models.CharField(max_length=255, blank=True, default='')
    city = models.CharField(max_length=100, blank=True, default='')
    governorate = models.CharField(max_length=100, blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')
    manager_id = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Manager'))

    is_active = models.BooleanField(default=True, verbose_name=_('Active'))
    is_default = models.BooleanField(
        default=False,
        verbose_name=_('Default location'),
        help_text=_('Movements recorded without a location land here.'),
    )

    # Policy
    allow_negative_stock = models.BooleanField(
        default=False,
        verbose_name=_('Allow negative stock'),
        help_text=_('If set, quantities here may drop below zero.'),
    )
    auto_reorder = models.BooleanField(default=True, verbose_name=_('Auto reorder'))
    print_receipts = models.BooleanField(default=True, verbose_name=_('Print receipts'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'depotman_location'
        verbose_name = _('Location')
        verbose_name_plural = _('Locations')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name
