"""
auth/engine.py -- Auth configuration bound to a live FieldRegistry.

Pattern: Observer. The engine registers itself as a registry listener and
runs the pure transforms from auth/repair.py on every rename, removal and
visibility change before the registry call returns. Callers never repair
references by hand.

Structural invariants held after every public call:
  - password_field is never an element of response_fields.
  - response_fields has no duplicates and no private or unknown field names.
  - allow_both is False whenever username_field is empty.

Scalar references (email, password, username) may be set to any name while
editing; a dangling one is reported by auth/validation.py at commit time.

Layer rule: imports auth/ and registry/ only.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any, Optional

from auth.endpoints import derived_endpoints
from auth.models import TOKEN_EXPIRATION_MAX, TOKEN_EXPIRATION_MIN, AuthConfig, Endpoint, default_auth_config
from auth.repair import apply_change, copy_config, normalize
from registry.field_registry import FieldRegistry
from registry.models import FieldChange, FieldType, Visibility

logger = logging.getLogger("schemaauth.auth.engine")

_SCALARS = frozenset(
    {"enabled", "user_collection", "password_field", "token_expiration", "require_email_verification", "allow_signup"}
)
_LOGIN = frozenset({"email_field", "username_field", "allow_both"})


class AuthConfigEngine:
    def __init__(self, registry: FieldRegistry, config: Optional[AuthConfig] = None) -> None:
        self.registry = registry
        self.reset(config)
        registry.add_listener(self._on_field_change)

    @property
    def config(self) -> AuthConfig:
        """A detached copy; mutate through the setters, not this object."""
        return copy_config(self._config)

    def detach(self) -> None:
        """Stop listening to the registry."""
        self.registry.remove_listener(self._on_field_change)

    def reset(self, config: Optional[AuthConfig] = None) -> None:
        """Replace the whole config. Raises ValueError for an out-of-range token_expiration."""
        if config is not None:
            _check_expiration(config.token_expiration)
        self._config = self._normalized(copy_config(config) if config is not None else default_auth_config())

    # ------------------------------------------------------------------
    # Registry reactions
    # ------------------------------------------------------------------

    def _on_field_change(self, change: FieldChange) -> None:
        before = self._config
        self._config = self._normalized(apply_change(before, change.old_name, change.new_name))
        if self._config != before:
            logger.debug(
                "Repaired auth config after %s of %r",
                "removal" if change.is_removal else "change",
                change.old_name,
            )

    def _private_names(self) -> set[str]:
        return {f.name for f in self.registry if f.visibility is Visibility.private}

    def _normalized(self, config: AuthConfig) -> AuthConfig:
        config = normalize(config, hidden=self._private_names())
        known = set(self.registry.names())
        config.response_fields = [name for name in config.response_fields if name in known]
        return config

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_enabled(self, enabled: bool) -> None:
        self._config = replace(self._config, enabled=bool(enabled))

    def set_user_collection(self, name: str) -> None:
        self._config = replace(self._config, user_collection=name.strip())

    def set_email_field(self, name: str) -> None:
        login = replace(self._config.login_fields, email_field=name)
        self._config = self._normalized(replace(self._config, login_fields=login))

    def set_username_field(self, name: str) -> None:
        login = replace(self._config.login_fields, username_field=name)
        self._config = self._normalized(replace(self._config, login_fields=login))

    def set_allow_both(self, allow: bool) -> None:
        login = replace(self._config.login_fields, allow_both=bool(allow))
        self._config = self._normalized(replace(self._config, login_fields=login))

    def set_password_field(self, name: str) -> None:
        # normalize() drops the new password name from response_fields.
        self._config = self._normalized(replace(self._config, password_field=name))

    def set_response_fields(self, names: Iterable[str]) -> None:
        self._config = self._normalized(replace(self._config, response_fields=list(names)))

    def add_response_field(self, name: str) -> bool:
        """Append name if it is a valid response choice. Returns whether it is now present."""
        if name in self._config.response_fields:
            return True
        self.set_response_fields([*self._config.response_fields, name])
        return name in self._config.response_fields

    def remove_response_field(self, name: str) -> None:
        self.set_response_fields(n for n in self._config.response_fields if n != name)

    def set_token_expiration(self, hours: int) -> None:
        _check_expiration(hours)
        self._config = replace(self._config, token_expiration=hours)

    def set_allow_signup(self, allow: bool) -> None:
        self._config = replace(self._config, allow_signup=bool(allow))

    def set_require_email_verification(self, required: bool) -> None:
        self._config = replace(self._config, require_email_verification=bool(required))

    def update(self, **changes: Any) -> None:
        """Apply several changes at once; nested login_fields keys are accepted flat or as a dict.

        All-or-nothing: if any value is rejected, the config is left as it was.
        """
        if "login_fields" in changes:
            nested = changes.pop("login_fields") or {}
            for key, value in nested.items():
                changes.setdefault(key, value)

        unknown = set(changes) - _SCALARS - _LOGIN - {"response_fields"}
        if unknown:
            raise ValueError(f"Unknown auth config attribute(s): {', '.join(sorted(unknown))}")

        saved = self._config
        try:
            setters = {
                "enabled": self.set_enabled,
                "user_collection": self.set_user_collection,
                "email_field": self.set_email_field,
                "username_field": self.set_username_field,
                "password_field": self.set_password_field,
                "token_expiration": self.set_token_expiration,
                "require_email_verification": self.set_require_email_verification,
                "allow_signup": self.set_allow_signup,
            }
            for key, setter in setters.items():
                if key in changes:
                    setter(changes[key])
            # After username_field and password_field, which both affect these.
            if "allow_both" in changes:
                self.set_allow_both(changes["allow_both"])
            if "response_fields" in changes:
                self.set_response_fields(changes["response_fields"])
        except ValueError:
            self._config = saved
            raise

    # ------------------------------------------------------------------
    # Choices and derived views
    # ------------------------------------------------------------------

    def login_field_choices(self) -> list[str]:
        """String-typed, named fields: candidates for email/username/password."""
        return _unique(f.name for f in self.registry if f.name and f.type is FieldType.string)

    def response_field_choices(self) -> list[str]:
        """Named public fields other than the password field."""
        password = self._config.password_field
        return _unique(
            f.name for f in self.registry if f.name and f.name != password and f.visibility is Visibility.public
        )

    def endpoints(self, collection_name: str) -> list[Endpoint]:
        return derived_endpoints(collection_name, self._config)


def _unique(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


def _check_expiration(hours: int) -> None:
    if isinstance(hours, bool) or not isinstance(hours, int):
        raise ValueError(f"token_expiration must be an integer number of hours, got {hours!r}")
    if not TOKEN_EXPIRATION_MIN <= hours <= TOKEN_EXPIRATION_MAX:
        raise ValueError(f"token_expiration must be between {TOKEN_EXPIRATION_MIN} and {TOKEN_EXPIRATION_MAX} hours")
