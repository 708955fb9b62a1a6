"""
auth/session.py -- One "create auth system" authoring session.

The session exclusively owns a FieldRegistry, the AuthConfigEngine bound to
it, and the target collection name. Nothing is shared across sessions, so
no locking is needed.

State machine:
    editing --validate()--> validating --> editing (errors recorded)
                                       --> committed (commit/submit succeeded)
    any mutation --> editing

commit() produces a frozen AuthSystemSpec and resets the session to the
default seed. The session keeps its own copy of that snapshot; callers and
the store each get detached copies, so editing one never reaches another.
submit() does the same but hands the snapshot to a persistence collaborator
first and only resets if that call succeeds. The collaborator's
errors propagate unchanged and the session stays editable.

A second submit() while one is outstanding is not blocked here; the caller
(api/routes/v1/sessions.py) checks `state` for that.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from enum import Enum
from typing import Any, Optional, Protocol, TypeVar

from auth.engine import AuthConfigEngine
from auth.models import AuthConfig, AuthSystemSpec, Endpoint
from auth.repair import copy_config
from auth.validation import ValidationError, validate
from registry.field_registry import FieldRegistry
from registry.models import Field

logger = logging.getLogger("schemaauth.auth.session")

T = TypeVar("T")


class SessionState(str, Enum):
    editing = "editing"
    validating = "validating"
    submitting = "submitting"
    committed = "committed"


class CommitRefused(ValueError):
    """Raised by commit()/submit() when validation fails. Carries the errors."""

    def __init__(self, errors: list[ValidationError]) -> None:
        self.errors = errors
        super().__init__(errors[0].message if errors else "Commit refused")


class SchemaStore(Protocol):
    """Persistence collaborator: anything that can store a committed snapshot."""

    def create_schema(self, spec: AuthSystemSpec) -> Any: ...


def _always_connected() -> bool:
    return True


class AuthoringSession:
    def __init__(
        self,
        collection_name: str = "",
        connection_check: Callable[[], bool] = _always_connected,
    ) -> None:
        self.collection_name = collection_name.strip()
        self.connection_check = connection_check
        self.registry = FieldRegistry()
        self.engine = AuthConfigEngine(self.registry)
        self.state = SessionState.editing
        self.last_errors: list[ValidationError] = []
        self._last_committed: Optional[AuthSystemSpec] = None
        self.registry.add_listener(self._on_field_change)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    @property
    def config(self) -> AuthConfig:
        return self.engine.config

    @property
    def last_committed(self) -> Optional[AuthSystemSpec]:
        """A detached copy of the most recent committed snapshot, or None."""
        return _copy_spec(self._last_committed) if self._last_committed is not None else None

    def _touch(self) -> None:
        if self.state is not SessionState.submitting:
            self.state = SessionState.editing

    def _on_field_change(self, change) -> None:
        self._touch()

    def _mutate(self, operation: Callable[..., T], *args: Any) -> T:
        result = operation(*args)
        self._touch()
        return result

    def set_collection_name(self, name: str) -> None:
        self.collection_name = name.strip()
        self._touch()

    def add_field(self) -> int:
        return self._mutate(self.registry.add_field)

    def rename_field(self, index: int, new_name: str) -> bool:
        return self._mutate(self.registry.rename_field, index, new_name)

    def update_field(self, index: int, changes: Mapping[str, Any]) -> bool:
        return self._mutate(self.registry.update_field, index, changes)

    def remove_field(self, index: int) -> bool:
        return self._mutate(self.registry.remove_field, index)

    def update_auth_config(self, **changes: Any) -> None:
        self._mutate(lambda: self.engine.update(**changes))

    def load_draft(
        self,
        collection_name: str = "",
        fields: Optional[Iterable[Field]] = None,
        auth_config: Optional[AuthConfig] = None,
    ) -> None:
        """Replace the whole session content. Omitted parts fall back to the defaults."""
        self.collection_name = collection_name.strip()
        self.registry.reset(fields)
        self.engine.reset(auth_config)
        self.last_errors = []
        self._touch()

    def reset(self) -> None:
        self.load_draft()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def endpoints(self) -> list[Endpoint]:
        return self.engine.endpoints(self.collection_name)

    # ------------------------------------------------------------------
    # Validation and commit
    # ------------------------------------------------------------------

    def validate(self) -> list[ValidationError]:
        """Run the commit rules. A session that is submitting stays submitting."""
        submitting = self.state is SessionState.submitting
        if not submitting:
            self.state = SessionState.validating
        self.last_errors = validate(
            self.collection_name,
            self.registry,
            self.engine.config,
            has_connection=self.connection_check(),
        )
        if not submitting:
            self.state = SessionState.editing
        return list(self.last_errors)

    def _snapshot(self) -> AuthSystemSpec:
        errors = self.validate()
        if errors:
            raise CommitRefused(errors)
        config = copy_config(self.engine.config)
        if not config.user_collection:
            config = replace(config, user_collection=f"{self.collection_name}_users")
        return AuthSystemSpec(
            collection_name=self.collection_name,
            fields=self.registry.snapshot(),
            auth_config=config,
        )

    def _finish(self, spec: AuthSystemSpec) -> None:
        self.reset()
        self._last_committed = _copy_spec(spec)
        self.state = SessionState.committed
        logger.info("Committed auth system %r (%d fields)", spec.collection_name, len(spec.fields))

    def commit(self) -> AuthSystemSpec:
        """Validate, snapshot, reset. Raises CommitRefused when validation fails."""
        spec = self._snapshot()
        self._finish(spec)
        return spec

    def submit(self, store: SchemaStore) -> Any:
        """Validate, snapshot, persist through store, then reset.

        Returns whatever store.create_schema() returns. Any exception from the
        store propagates; the session is left unchanged and editable.
        """
        spec = self._snapshot()
        self.state = SessionState.submitting
        try:
            stored = store.create_schema(_copy_spec(spec))
        except Exception:
            self.state = SessionState.editing
            logger.warning("Schema service rejected %r; session kept for editing", spec.collection_name)
            raise
        self._finish(spec)
        return stored


def _copy_spec(spec: AuthSystemSpec) -> AuthSystemSpec:
    return AuthSystemSpec(
        collection_name=spec.collection_name,
        fields=tuple(replace(f) for f in spec.fields),
        auth_config=copy_config(spec.auth_config),
    )
