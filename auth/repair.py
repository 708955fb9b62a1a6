"""
auth/repair.py -- Pure reference-repair transforms for AuthConfig.

Every function takes a config and returns a NEW config; the input is never
mutated. The engine applies them synchronously on each registry change so a
config never points at a field name the registry no longer has.

Rules:
  rename old -> new   every scalar reference equal to old becomes new; the
                      response_fields entry equal to old is replaced in place.
  removal of old      every scalar reference equal to old becomes ""; old is
                      dropped from response_fields.

Edge cases:
  - An empty old name propagates nothing. "" means "unset" and must never
    capture unset references.
  - A rename to "" is applied as a removal of old.
  - normalize() runs after every transform: response_fields is deduplicated
    (first occurrence wins), the password field is removed from it, and
    allow_both is cleared when there is no username field.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Optional

from auth.models import AuthConfig, LoginFieldMapping


def copy_config(config: AuthConfig) -> AuthConfig:
    """Deep enough copy of a config: nested mapping and list are detached."""
    return replace(
        config,
        login_fields=replace(config.login_fields),
        response_fields=list(config.response_fields),
    )


def normalize(config: AuthConfig, hidden: Iterable[str] = ()) -> AuthConfig:
    """Enforce the structural invariants on response_fields and allow_both.

    hidden: extra names that may never be response fields (private fields).
    """
    excluded = set(hidden)
    if config.password_field:
        excluded.add(config.password_field)

    seen: set[str] = set()
    response: list[str] = []
    for name in config.response_fields:
        if not name or name in excluded or name in seen:
            continue
        seen.add(name)
        response.append(name)

    login = config.login_fields
    if not login.username_field and login.allow_both:
        login = replace(login, allow_both=False)

    return replace(config, login_fields=replace(login), response_fields=response)


def apply_rename(config: AuthConfig, old: str, new: str) -> AuthConfig:
    """Return a config with every reference to old pointing at new."""
    if not old or old == new:
        return normalize(copy_config(config))
    if not new:
        return apply_removal(config, old)

    login = config.login_fields
    updated_login = LoginFieldMapping(
        email_field=new if login.email_field == old else login.email_field,
        username_field=new if login.username_field == old else login.username_field,
        allow_both=login.allow_both,
    )
    response = [new if name == old else name for name in config.response_fields]
    return normalize(
        replace(
            config,
            login_fields=updated_login,
            password_field=new if config.password_field == old else config.password_field,
            response_fields=response,
        )
    )


def apply_removal(config: AuthConfig, old: str) -> AuthConfig:
    """Return a config with every reference to old cleared."""
    if not old:
        return normalize(copy_config(config))

    login = config.login_fields
    updated_login = LoginFieldMapping(
        email_field="" if login.email_field == old else login.email_field,
        username_field="" if login.username_field == old else login.username_field,
        allow_both=login.allow_both,
    )
    return normalize(
        replace(
            config,
            login_fields=updated_login,
            password_field="" if config.password_field == old else config.password_field,
            response_fields=[name for name in config.response_fields if name != old],
        )
    )


def apply_change(config: AuthConfig, old: str, new: Optional[str]) -> AuthConfig:
    """Dispatch a registry change: new=None is a removal, anything else a rename."""
    if new is None:
        return apply_removal(config, old)
    return apply_rename(config, old, new)
