"""
Query building for lead listings: filters, sorting and paging options.
"""

from leadsdb.query.filter import (
    AND,
    OR,
    ArrayField,
    AttrField,
    Fields,
    Filter,
    LocationField,
    Logic,
    NumberField,
    TextField,
    format_number,
)
from leadsdb.query.options import (
    ListOptions,
    ListOptionsBuilder,
    SortField,
    SortOrder,
    attr_sort,
)

__all__ = [
    "AND",
    "OR",
    "ArrayField",
    "AttrField",
    "Fields",
    "Filter",
    "ListOptions",
    "ListOptionsBuilder",
    "LocationField",
    "Logic",
    "NumberField",
    "SortField",
    "SortOrder",
    "TextField",
    "attr_sort",
    "format_number",
]
