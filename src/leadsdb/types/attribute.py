"""
Dynamic key-value attributes attached to leads.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AttributeType(str, Enum):
    """Type of a dynamic attribute."""

    TEXT = "text"
    NUMBER = "number"
    BOOL = "bool"
    LIST = "list"
    OBJECT = "object"


class Attribute(BaseModel):
    """A dynamic key-value attribute on a lead."""

    name: str = Field(description="Attribute name")
    type: AttributeType = Field(description="Attribute value type")
    value: Any = Field(default=None, description="Attribute value")

    @classmethod
    def text(cls, name: str, value: str) -> Attribute:
        """Create a text attribute."""
        return cls(name=name, type=AttributeType.TEXT, value=value)

    @classmethod
    def number(cls, name: str, value: float) -> Attribute:
        """Create a number attribute."""
        return cls(name=name, type=AttributeType.NUMBER, value=value)

    @classmethod
    def boolean(cls, name: str, value: bool) -> Attribute:
        """Create a boolean attribute."""
        return cls(name=name, type=AttributeType.BOOL, value=value)

    @classmethod
    def list_of(cls, name: str, value: list[str]) -> Attribute:
        """Create a list attribute."""
        return cls(name=name, type=AttributeType.LIST, value=list(value))

    @classmethod
    def object(cls, name: str, value: dict[str, Any]) -> Attribute:
        """Create an object attribute."""
        return cls(name=name, type=AttributeType.OBJECT, value=dict(value))
