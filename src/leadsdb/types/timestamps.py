"""Unix-seconds timestamps as timezone-aware datetimes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer


def _from_unix(value: Any) -> Any:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    if isinstance(value, str) and value.lstrip("-").isdigit():
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    return value


def _to_unix(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp())


UnixTime = Annotated[
    datetime | None,
    BeforeValidator(_from_unix),
    PlainSerializer(_to_unix, return_type=int | None),
]
"""Datetime carried on the wire as integer unix seconds, ``null`` when unset."""
