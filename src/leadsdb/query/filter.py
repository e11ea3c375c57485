"""
Filter expressions for lead listings.

A filter travels as a single ``filter`` query parameter of the form
``logic.operator.field[.value]``, for example ``and.eq.city.Berlin``.

Example:
    >>> from leadsdb.query import AND, OR
    >>> str(AND.city.eq("Berlin"))
    'and.eq.city.Berlin'
    >>> str(OR.rating.gte(4.5))
    'or.gte.rating.4.5'
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Logic(str, Enum):
    """How a filter combines with the others."""

    AND = "and"
    OR = "or"


@dataclass(frozen=True)
class Filter:
    """A single filter expression.

    Attributes:
        logic: Combination logic
        operator: Comparison operator (eq, gt, array_contains, ...)
        field: Field name, or ``attr:<name>`` for custom attributes
        value: Operand; empty for unary operators
    """

    logic: Logic
    operator: str
    field: str
    value: str = ""

    def __str__(self) -> str:
        if not self.value:
            return f"{self.logic.value}.{self.operator}.{self.field}"
        return f"{self.logic.value}.{self.operator}.{self.field}.{self.value}"


def format_number(value: float) -> str:
    """Format a number for a filter operand.

    Uses the shortest digits that round-trip, in fixed notation, dropping
    a trailing ``.0`` so whole numbers render as integers.
    """
    text = repr(float(value))
    if "e" in text:
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        return text[:-2]
    return text


class _FieldBase:
    def __init__(self, logic: Logic, field: str) -> None:
        self._logic = logic
        self._field = field

    @property
    def field(self) -> str:
        return self._field

    def _make(self, operator: str, value: str = "") -> Filter:
        return Filter(self._logic, operator, self._field, value)


class TextField(_FieldBase):
    """Filters on a text field."""

    def eq(self, value: str) -> Filter:
        return self._make("eq", value)

    def neq(self, value: str) -> Filter:
        return self._make("neq", value)

    def contains(self, value: str) -> Filter:
        return self._make("contains", value)

    def not_contains(self, value: str) -> Filter:
        return self._make("not_contains", value)

    def is_empty(self) -> Filter:
        return self._make("is_empty")

    def is_not_empty(self) -> Filter:
        return self._make("is_not_empty")


class NumberField(_FieldBase):
    """Filters on a numeric field."""

    def eq(self, value: float) -> Filter:
        return self._make("eq", format_number(value))

    def neq(self, value: float) -> Filter:
        return self._make("neq", format_number(value))

    def gt(self, value: float) -> Filter:
        return self._make("gt", format_number(value))

    def gte(self, value: float) -> Filter:
        return self._make("gte", format_number(value))

    def lt(self, value: float) -> Filter:
        return self._make("lt", format_number(value))

    def lte(self, value: float) -> Filter:
        return self._make("lte", format_number(value))


class ArrayField(_FieldBase):
    """Filters on an array field such as ``tags``."""

    def contains(self, value: str) -> Filter:
        return self._make("array_contains", value)

    def not_contains(self, value: str) -> Filter:
        return self._make("array_not_contains", value)

    def is_empty(self) -> Filter:
        return self._make("array_empty")

    def is_not_empty(self) -> Filter:
        return self._make("array_not_empty")


class LocationField(_FieldBase):
    """Filters on the lead's coordinates."""

    def __init__(self, logic: Logic) -> None:
        super().__init__(logic, "location")

    def within_radius(self, latitude: float, longitude: float, km: float) -> Filter:
        """Match leads within ``km`` kilometres of a point."""
        value = ",".join(format_number(v) for v in (latitude, longitude, km))
        return self._make("within_radius", value)

    def is_set(self) -> Filter:
        return self._make("is_set")

    def is_not_set(self) -> Filter:
        return self._make("is_not_set")


class AttrField(_FieldBase):
    """Filters on a custom attribute."""

    def __init__(self, logic: Logic, name: str) -> None:
        super().__init__(logic, f"attr:{name}")

    def eq(self, value: str) -> Filter:
        return self._make("eq", value)

    def neq(self, value: str) -> Filter:
        return self._make("neq", value)

    def contains(self, value: str) -> Filter:
        return self._make("contains", value)

    def eq_number(self, value: float) -> Filter:
        return self._make("eq", format_number(value))

    def gt(self, value: float) -> Filter:
        return self._make("gt", format_number(value))

    def gte(self, value: float) -> Filter:
        return self._make("gte", format_number(value))

    def lt(self, value: float) -> Filter:
        return self._make("lt", format_number(value))

    def lte(self, value: float) -> Filter:
        return self._make("lte", format_number(value))


class Fields:
    """Entry point for building filters with a given logic.

    Use the module-level ``AND`` and ``OR`` instances.
    """

    def __init__(self, logic: Logic) -> None:
        self._logic = logic

    @property
    def logic(self) -> Logic:
        return self._logic

    @property
    def city(self) -> TextField:
        return TextField(self._logic, "city")

    @property
    def country(self) -> TextField:
        return TextField(self._logic, "country")

    @property
    def state(self) -> TextField:
        return TextField(self._logic, "state")

    @property
    def name(self) -> TextField:
        return TextField(self._logic, "name")

    @property
    def email(self) -> TextField:
        return TextField(self._logic, "email")

    @property
    def phone(self) -> TextField:
        return TextField(self._logic, "phone")

    @property
    def website(self) -> TextField:
        return TextField(self._logic, "website")

    @property
    def category(self) -> TextField:
        return TextField(self._logic, "category")

    @property
    def source(self) -> TextField:
        return TextField(self._logic, "source")

    @property
    def rating(self) -> NumberField:
        return NumberField(self._logic, "rating")

    @property
    def review_count(self) -> NumberField:
        return NumberField(self._logic, "review_count")

    @property
    def tags(self) -> ArrayField:
        return ArrayField(self._logic, "tags")

    @property
    def location(self) -> LocationField:
        return LocationField(self._logic)

    def attr(self, name: str) -> AttrField:
        """Filter on the custom attribute ``name``."""
        return AttrField(self._logic, name)


AND = Fields(Logic.AND)
OR = Fields(Logic.OR)
