"""
Lead data models.

Provides the lead entity, its partial-update input and location type.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from leadsdb.types.attribute import Attribute
from leadsdb.types.note import Note
from leadsdb.types.timestamps import UnixTime


class Coordinate(BaseModel):
    """Geographical coordinates."""

    latitude: float
    longitude: float


class Lead(BaseModel):
    """A business lead.

    Only ``name`` and ``source`` are required when creating a lead; the
    server assigns ``id`` and the timestamps.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, description="Unique identifier")
    name: str = Field(default="", description="Business name")
    source: str = Field(default="", description="Where the lead was sourced from")
    description: str | None = None

    # Location
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    postal_code: str | None = None
    coordinates: Coordinate | None = None

    # Contact
    phone: str | None = None
    email: str | None = None
    website: str | None = None

    # Business metrics
    rating: float | None = None
    review_count: int | None = None

    # Categorization
    category: str | None = None
    tags: list[str] | None = None

    # Source tracking
    source_id: str | None = None
    logo_url: str | None = None

    attributes: list[Attribute] | None = None
    notes: list[Note] | None = None

    created_at: UnixTime = None
    updated_at: UnixTime = None


class UpdateLeadInput(BaseModel):
    """Partial update for an existing lead.

    Fields left as None are not sent. ``attributes`` replaces all existing
    attributes when given.
    """

    name: str | None = None
    source: str | None = None
    description: str | None = None

    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    postal_code: str | None = None
    coordinates: Coordinate | None = None

    phone: str | None = None
    email: str | None = None
    website: str | None = None

    rating: float | None = None
    review_count: int | None = None

    category: str | None = None
    tags: list[str] | None = None

    source_id: str | None = None
    logo_url: str | None = None

    attributes: list[Attribute] | None = None
