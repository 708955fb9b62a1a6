"""
registry/models.py -- Domain dataclasses for record schema fields.

Pattern: Data class (pure data container, zero logic). The registry in
registry/field_registry.py does the work; these only own the shape.

Layer rule: registry/ is a leaf. No imports from auth/, schemas/, api/,
cache/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class FieldType(str, Enum):
    string = "string"
    number = "number"
    boolean = "boolean"
    array = "array"
    object = "object"
    date = "date"


class Visibility(str, Enum):
    public = "public"
    private = "private"  # sensitive data, never disclosed in responses


@dataclass
class Field:
    """One typed, named attribute of a record schema.

    name may be empty while the field is being edited. Uniqueness is not
    enforced here; the registry and the auth engine both treat duplicate
    names as possible input.
    """

    name: str = ""
    type: FieldType = FieldType.string
    visibility: Visibility = Visibility.public
    required: bool = False
    default: Optional[Any] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class FieldChange:
    """Notification emitted by the registry when a field is renamed or removed.

    new_name is None for a removal. A rename to the empty string is still a
    rename here; listeners decide what an empty name means for them.
    """

    old_name: str
    new_name: Optional[str]
    visibility: Visibility = Visibility.public  # visibility after the change

    @property
    def is_removal(self) -> bool:
        return self.new_name is None


def default_fields() -> list[Field]:
    """Seed set for a new "users" record schema."""
    return [
        Field(name="id", type=FieldType.string, visibility=Visibility.public, required=True),
        Field(name="email", type=FieldType.string, visibility=Visibility.public, required=True),
        Field(name="password", type=FieldType.string, visibility=Visibility.private, required=True),
        Field(name="name", type=FieldType.string, visibility=Visibility.public, required=True),
        Field(name="created_at", type=FieldType.date, visibility=Visibility.public, required=True),
    ]
