"""
auth/validation.py -- Commit-gating validation for an auth configuration.

validate() is a pure function of its inputs. Rules run in a fixed order and
the first failing rule is the only one reported (fail-fast): earlier rules
are prerequisites for later ones, e.g. a dangling-reference check is
meaningless while fields still have no names.

  1. missing_mongo_connection   no backing database connection configured
  2. missing_table_name         collection name is empty
  3. incomplete_fields          some field has an empty name
  4. missing_email_field        login_fields.email_field is empty
  5. missing_password_field     password_field is empty
  6. dangling_email_field       email_field names no field in the registry
  7. dangling_password_field    password_field names no field in the registry

Errors are returned as data, never raised. The caller keeps editing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from auth.models import AuthConfig
from registry.models import Field

logger = logging.getLogger("schemaauth.auth.validation")


class ValidationCode(str, Enum):
    missing_mongo_connection = "missing_mongo_connection"
    missing_table_name = "missing_table_name"
    incomplete_fields = "incomplete_fields"
    missing_email_field = "missing_email_field"
    missing_password_field = "missing_password_field"
    dangling_email_field = "dangling_email_field"
    dangling_password_field = "dangling_password_field"


@dataclass(frozen=True)
class ValidationError:
    code: ValidationCode
    message: str


_Rule = Callable[[str, list[Field], AuthConfig, bool], Optional[ValidationError]]


def _check_connection(collection_name, fields, config, has_connection):
    if not has_connection:
        return ValidationError(ValidationCode.missing_mongo_connection, "Please first add a MongoDB connection")
    return None


def _check_table_name(collection_name, fields, config, has_connection):
    if not collection_name:
        return ValidationError(ValidationCode.missing_table_name, "Please provide a table name")
    return None


def _check_field_names(collection_name, fields, config, has_connection):
    if not all(f.name for f in fields):
        return ValidationError(ValidationCode.incomplete_fields, "Please ensure all fields have names")
    return None


def _check_email_set(collection_name, fields, config, has_connection):
    if not config.login_fields.email_field:
        return ValidationError(ValidationCode.missing_email_field, "Email field is required")
    return None


def _check_password_set(collection_name, fields, config, has_connection):
    if not config.password_field:
        return ValidationError(ValidationCode.missing_password_field, "Password field is required")
    return None


def _check_email_exists(collection_name, fields, config, has_connection):
    email = config.login_fields.email_field
    if email not in {f.name for f in fields}:
        return ValidationError(ValidationCode.dangling_email_field, f"Email field '{email}' not found in schema")
    return None


def _check_password_exists(collection_name, fields, config, has_connection):
    password = config.password_field
    if password not in {f.name for f in fields}:
        return ValidationError(
            ValidationCode.dangling_password_field, f"Password field '{password}' not found in schema"
        )
    return None


# Order matters: first match wins.
RULES: tuple[_Rule, ...] = (
    _check_connection,
    _check_table_name,
    _check_field_names,
    _check_email_set,
    _check_password_set,
    _check_email_exists,
    _check_password_exists,
)


def validate(
    collection_name: str,
    fields: Iterable[Field],
    config: AuthConfig,
    has_connection: bool = True,
) -> list[ValidationError]:
    """Return [] when the config may be committed, else [first failure]."""
    field_list = list(fields)
    for rule in RULES:
        error = rule(collection_name, field_list, config, has_connection)
        if error is not None:
            logger.info("Validation failed for %r: %s", collection_name, error.code.value)
            return [error]
    return []
