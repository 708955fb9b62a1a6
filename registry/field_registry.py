"""
registry/field_registry.py -- Ordered, mutable set of field definitions.

The registry knows nothing about authentication. Anything that holds field
name references (the auth engine) subscribes with add_listener() and is told
synchronously about every rename, removal and visibility change, before the
mutating call returns.

Precondition violations (out-of-range index, removing the last field) are
refused as no-ops: the method returns False and the registry is untouched.
Duplicate and empty names are allowed while editing.

Usage:
    registry = FieldRegistry()                 # default "users" seed
    registry.add_field()
    registry.rename_field(1, "primary_email")
    registry.update_field(5, {"name": "phone", "type": "number"})
    registry.remove_field(2)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import replace
from typing import Any, Optional

from registry.models import Field, FieldChange, FieldType, Visibility, default_fields

logger = logging.getLogger("schemaauth.registry")

FieldListener = Callable[[FieldChange], None]

_UPDATABLE = frozenset({"name", "type", "visibility", "required", "default", "description"})


class FieldRegistry:
    def __init__(self, fields: Optional[Iterable[Field]] = None) -> None:
        self._fields: list[Field] = [replace(f) for f in fields] if fields is not None else default_fields()
        self._listeners: list[FieldListener] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields)

    def __getitem__(self, index: int) -> Field:
        return self._fields[index]

    def names(self) -> list[str]:
        """Field names in registry order, empty names included."""
        return [f.name for f in self._fields]

    def has_name(self, name: str) -> bool:
        return bool(name) and any(f.name == name for f in self._fields)

    def find(self, name: str) -> Optional[Field]:
        """Return the first field called name, or None."""
        for f in self._fields:
            if f.name == name:
                return f
        return None

    def snapshot(self) -> tuple[Field, ...]:
        """Detached copies of every field, safe to hand to another owner."""
        return tuple(replace(f) for f in self._fields)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: FieldListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: FieldListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, change: FieldChange) -> None:
        for listener in list(self._listeners):
            listener(change)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_field(self) -> int:
        """Append an empty public string field. Returns its index."""
        self._fields.append(Field())
        return len(self._fields) - 1

    def rename_field(self, index: int, new_name: str) -> bool:
        return self.update_field(index, {"name": new_name})

    def update_field(self, index: int, changes: Mapping[str, Any]) -> bool:
        """Merge changes into the field at index.

        Raises ValueError for unknown attributes, a non-string name, a
        non-bool required flag or values outside the FieldType / Visibility
        enumerations; the field is left unchanged.
        Returns False (no-op) when index is out of range.
        """
        if not self._in_range(index):
            logger.debug("update_field refused: index %s out of range (len=%d)", index, len(self._fields))
            return False

        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown field attribute(s): {', '.join(sorted(unknown))}")

        coerced = dict(changes)
        if "type" in coerced:
            coerced["type"] = FieldType(coerced["type"])
        if "visibility" in coerced:
            coerced["visibility"] = Visibility(coerced["visibility"])
        if "name" in coerced and not isinstance(coerced["name"], str):
            raise ValueError(f"Field name must be a string, got {coerced['name']!r}")
        if "required" in coerced and not isinstance(coerced["required"], bool):
            raise ValueError(f"required must be true or false, got {coerced['required']!r}")

        before = self._fields[index]
        after = replace(before, **coerced)
        self._fields[index] = after

        renamed = after.name != before.name
        hidden = after.visibility is Visibility.private and before.visibility is not Visibility.private
        if renamed or hidden:
            self._notify(FieldChange(old_name=before.name, new_name=after.name, visibility=after.visibility))
        return True

    def remove_field(self, index: int) -> bool:
        """Remove the field at index. The last remaining field is never removed."""
        if not self._in_range(index):
            logger.debug("remove_field refused: index %s out of range (len=%d)", index, len(self._fields))
            return False
        if len(self._fields) <= 1:
            logger.debug("remove_field refused: registry must keep at least one field")
            return False
        removed = self._fields.pop(index)
        self._notify(FieldChange(old_name=removed.name, new_name=None, visibility=removed.visibility))
        return True

    def reset(self, fields: Optional[Iterable[Field]] = None) -> None:
        """Replace every field without notifying listeners."""
        self._fields = [replace(f) for f in fields] if fields is not None else default_fields()

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self._fields)
