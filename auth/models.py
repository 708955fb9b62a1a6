"""
auth/models.py -- Domain dataclasses for authentication configuration.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in registry/models.py -- dataclasses own domain shape; the engine, repair
functions and validation do the work.

Layer rule: no imports from api/, cache/, core/, or schemas/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

from registry.models import Field

# Inclusive bounds for AuthConfig.token_expiration, in hours (one year max).
TOKEN_EXPIRATION_MIN = 1
TOKEN_EXPIRATION_MAX = 8760


@dataclass
class LoginFieldMapping:
    """Which fields serve as login identifiers.

    Empty string means "unset" for both references. allow_both only means
    something when username_field is set.
    """

    email_field: str = ""
    username_field: str = ""
    allow_both: bool = False


@dataclass
class AuthConfig:
    """Authentication policy bound to one schema-in-progress.

    Every *_field attribute holds a field *name*, never a Field object, so a
    config can be snapshotted and serialized without its registry. Keeping
    those names valid is the engine's job (auth/engine.py, auth/repair.py).

    user_collection may stay empty while editing; commit defaults it to
    "<collection_name>_users".
    """

    enabled: bool = True
    user_collection: str = ""
    login_fields: LoginFieldMapping = field(default_factory=LoginFieldMapping)
    password_field: str = ""
    response_fields: list[str] = field(default_factory=list)  # ordered, no duplicates
    token_expiration: int = 24  # hours
    require_email_verification: bool = False
    allow_signup: bool = True


class Endpoint(NamedTuple):
    """One derived auth route, e.g. ("POST", "/api/orders/auth/login")."""

    method: str
    path: str


@dataclass(frozen=True)
class AuthSystemSpec:
    """Immutable commit artifact handed to the schema persistence service.

    fields and auth_config are detached copies; mutating the authoring
    session afterwards never reaches a snapshot.
    """

    collection_name: str
    fields: tuple[Field, ...]
    auth_config: AuthConfig


def default_auth_config() -> AuthConfig:
    """Config matching the default "users" seed in registry.models.default_fields()."""
    return AuthConfig(
        enabled=True,
        user_collection="",
        login_fields=LoginFieldMapping(email_field="email", username_field="", allow_both=False),
        password_field="password",
        response_fields=["id", "email", "name", "created_at"],
        token_expiration=24,
        require_email_verification=False,
        allow_signup=True,
    )
