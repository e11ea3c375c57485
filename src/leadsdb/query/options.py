"""
Listing options: page size, cursor, sort and filters.

Options are immutable; the paginator derives each follow-up request from
the original options via ``with_cursor``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from leadsdb.query.filter import Filter


class SortField(str, Enum):
    """Known lead fields usable for sorting."""

    NAME = "name"
    CITY = "city"
    COUNTRY = "country"
    STATE = "state"
    CATEGORY = "category"
    SOURCE = "source"
    EMAIL = "email"
    PHONE = "phone"
    WEBSITE = "website"
    RATING = "rating"
    REVIEW_COUNT = "review_count"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "ASC"
    DESC = "DESC"


def attr_sort(name: str) -> str:
    """Sort key for the custom attribute ``name``."""
    return f"attr:{name}"


def _sort_key(field: SortField | str) -> str:
    if isinstance(field, SortField):
        return field.value
    return field


@dataclass(frozen=True)
class ListOptions:
    """Options for a lead listing.

    Attributes:
        limit: Page size; 0 leaves it to the server
        cursor: Opaque continuation token from a previous page
        sort_by: Sort field name or ``attr:<name>``
        sort_order: Sort direction, sent only together with ``sort_by``
        filters: Filters, sent as repeated ``filter`` parameters in order
    """

    limit: int = 0
    cursor: str | None = None
    sort_by: SortField | str | None = None
    sort_order: SortOrder | None = None
    filters: tuple[Filter, ...] = ()

    @classmethod
    def builder(cls) -> ListOptionsBuilder:
        return ListOptionsBuilder()

    def with_cursor(self, cursor: str | None) -> ListOptions:
        """Return a copy continuing from ``cursor``."""
        return replace(self, cursor=cursor)

    def to_params(self) -> tuple[tuple[str, str], ...]:
        """Encode as ordered query parameter pairs."""
        params: list[tuple[str, str]] = []
        if self.limit > 0:
            params.append(("limit", str(self.limit)))
        if self.cursor:
            params.append(("cursor", self.cursor))
        if self.sort_by:
            params.append(("sort_by", _sort_key(self.sort_by)))
            if self.sort_order is not None:
                params.append(("sort_order", self.sort_order.value))
        params.extend(("filter", str(f)) for f in self.filters)
        return tuple(params)


class ListOptionsBuilder:
    """Fluent builder for ``ListOptions``.

    Example:
        >>> from leadsdb.query import AND, ListOptionsBuilder, SortField, SortOrder
        >>> options = (
        ...     ListOptionsBuilder()
        ...     .limit(50)
        ...     .sort(SortField.RATING, SortOrder.DESC)
        ...     .filter(AND.city.eq("Berlin"), AND.rating.gte(4))
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._limit = 0
        self._cursor: str | None = None
        self._sort_by: str | None = None
        self._sort_order: SortOrder | None = None
        self._filters: list[Filter] = []

    def limit(self, n: int) -> ListOptionsBuilder:
        """Set the page size."""
        self._limit = n
        return self

    def cursor(self, cursor: str) -> ListOptionsBuilder:
        """Start from a previously returned cursor."""
        self._cursor = cursor
        return self

    def sort(
        self, field: SortField | str, order: SortOrder = SortOrder.ASC
    ) -> ListOptionsBuilder:
        """Set the sort field and direction.

        Args:
            field: A known field or an ``attr_sort(name)`` key
            order: Sort direction

        Returns:
            Self for chaining
        """
        self._sort_by = _sort_key(field)
        self._sort_order = order
        return self

    def filter(self, *filters: Filter) -> ListOptionsBuilder:
        """Append filters."""
        self._filters.extend(filters)
        return self

    def filters(self, filters: Iterable[Filter]) -> ListOptionsBuilder:
        self._filters.extend(filters)
        return self

    def build(self) -> ListOptions:
        return ListOptions(
            limit=self._limit,
            cursor=self._cursor,
            sort_by=self._sort_by,
            sort_order=self._sort_order,
            filters=tuple(self._filters),
        )
