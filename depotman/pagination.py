"""
Pagination for read paths.

Querysets stay lazy and restartable; ``paginate`` cuts one page out of
them and reports the totals callers need to render page links.
"""

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from math import ceil
from typing import Any

from django.core.paginator import EmptyPage, Paginator

from depotman.conf import depot_settings
from depotman.exceptions import ValidationError


@dataclass(frozen=True)
class Page:
    """One page of results."""

    items: Sequence[Any]
    number: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def paginate(queryset, page: int = 1, limit: int | None = None,
             transform: Callable[[Any], Any] | None = None) -> Page:
    """
    Slice an ordered queryset into a Page.

    A page past the end is empty rather than an error.

    Raises:
        ValidationError('INVALID_PAGE'): page < 1 or limit outside 1..MAX_PAGE_SIZE
    """
    if limit is None:
        limit = depot_settings.DEFAULT_PAGE_SIZE
    if page < 1 or limit < 1 or limit > depot_settings.MAX_PAGE_SIZE:
        raise ValidationError('INVALID_PAGE', page=page, limit=limit)

    paginator = Paginator(queryset, limit)
    try:
        items = paginator.page(page).object_list
    except EmptyPage:
        items = queryset.none()

    if transform is not None:
        items = [transform(obj) for obj in items]

    return Page(items=items, number=page, limit=limit, total=paginator.count)
