"""
Listing, bulk-create and export shapes.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from leadsdb.types.lead import Lead
from leadsdb.types.timestamps import UnixTime


class ListResult(BaseModel):
    """One page of a lead listing."""

    leads: list[Lead] = Field(default_factory=list)
    count: int = 0
    has_more: bool = False
    next_cursor: str | None = None


class BulkCreateRequest(BaseModel):
    """Request body for a bulk create."""

    leads: list[Lead]


class BulkLeadResult(BaseModel):
    """A lead created by a bulk request.

    Attributes:
        index: Position of the lead in the submitted batch
    """

    index: int
    id: str
    created_at: UnixTime = None


class BulkLeadError(BaseModel):
    """A lead rejected by a bulk request."""

    index: int
    message: str


class BulkCreateResult(BaseModel):
    """Outcome of a bulk create: aggregate counts plus per-index entries."""

    total: int = 0
    success: int = 0
    failed: int = 0
    created: list[BulkLeadResult] = Field(default_factory=list)
    errors: list[BulkLeadError] = Field(default_factory=list)

    def accounts_for(self, submitted: int) -> bool:
        """Whether created plus failed entries cover every submitted record."""
        return len(self.created) + len(self.errors) == submitted


class ExportFormat(str, Enum):
    """Export file formats."""

    CSV = "csv"
    JSON = "json"
