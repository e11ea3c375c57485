"""
Type definitions for the LeadsDB API.

Wire shapes are pydantic models; timestamps travel as unix seconds.
"""

from leadsdb.types.attribute import Attribute, AttributeType
from leadsdb.types.lead import Coordinate, Lead, UpdateLeadInput
from leadsdb.types.note import Note, NoteContent
from leadsdb.types.results import (
    BulkCreateRequest,
    BulkCreateResult,
    BulkLeadError,
    BulkLeadResult,
    ExportFormat,
    ListResult,
)
from leadsdb.types.timestamps import UnixTime

__all__ = [
    "Attribute",
    "AttributeType",
    "BulkCreateRequest",
    "BulkCreateResult",
    "BulkLeadError",
    "BulkLeadResult",
    "Coordinate",
    "ExportFormat",
    "Lead",
    "ListResult",
    "Note",
    "NoteContent",
    "UnixTime",
    "UpdateLeadInput",
]
