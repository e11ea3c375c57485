"""Notes attached to leads."""

from __future__ import annotations

from pydantic import BaseModel

from leadsdb.types.timestamps import UnixTime


class Note(BaseModel):
    """A note attached to a lead."""

    id: str
    lead_id: str
    content: str
    created_at: UnixTime = None
    updated_at: UnixTime = None


class NoteContent(BaseModel):
    """Request body for creating or replacing a note."""

    content: str
