"""
schemas/mappers.py -- Translate between JSON dicts and domain dataclasses.

Pattern: Data Mapper. The schema service payload, the CLI draft file and the
HTTP API all speak the same dict shape; these functions are the only place
that knows it. Unknown keys are ignored on the way in.

Payload shape (POST /schemas):
    {
      "collection_name": "customers",
      "fields": [{"name": "email", "type": "string", "visibility": "public",
                  "required": true}, ...],
      "auth_config": {"enabled": true, "user_collection": "customers_users",
                      "login_fields": {"email_field": "email", ...}, ...}
    }
"""

from __future__ import annotations

from typing import Any, Optional

from auth.models import AuthConfig, AuthSystemSpec, LoginFieldMapping
from registry.models import Field, FieldType, Visibility
from schemas.models import StoredSchema


def field_to_dict(f: Field) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": f.name,
        "type": f.type.value,
        "visibility": f.visibility.value,
        "required": f.required,
    }
    # Optional keys are omitted rather than sent as null.
    if f.default is not None:
        data["default"] = f.default
    if f.description is not None:
        data["description"] = f.description
    return data


def _require_dict(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _require_list(value: Any, what: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a list, got {type(value).__name__}")
    return value


def field_from_dict(data: dict[str, Any]) -> Field:
    """Build a Field. Raises ValueError for a non-object, an unknown type or visibility."""
    data = _require_dict(data, "field")
    return Field(
        name=str(data.get("name") or ""),
        type=FieldType(data.get("type", FieldType.string.value)),
        visibility=Visibility(data.get("visibility", Visibility.public.value)),
        required=bool(data.get("required", False)),
        default=data.get("default"),
        description=data.get("description"),
    )


def fields_from_list(data: Any) -> list[Field]:
    """Build a field list. Raises ValueError unless data is a list of field objects."""
    return [field_from_dict(f) for f in _require_list(data, "fields")]


def auth_config_to_dict(config: AuthConfig) -> dict[str, Any]:
    return {
        "enabled": config.enabled,
        "user_collection": config.user_collection,
        "login_fields": {
            "email_field": config.login_fields.email_field,
            "username_field": config.login_fields.username_field,
            "allow_both": config.login_fields.allow_both,
        },
        "response_fields": list(config.response_fields),
        "password_field": config.password_field,
        "token_expiration": config.token_expiration,
        "require_email_verification": config.require_email_verification,
        "allow_signup": config.allow_signup,
    }


def auth_config_from_dict(data: dict[str, Any]) -> AuthConfig:
    """Build an AuthConfig. Raises ValueError when a section has the wrong shape."""
    data = _require_dict(data, "auth_config")
    login = _require_dict(data.get("login_fields") or {}, "login_fields")
    token_expiration = data.get("token_expiration", 24)
    if isinstance(token_expiration, bool) or not isinstance(token_expiration, int):
        raise ValueError(f"token_expiration must be an integer number of hours, got {token_expiration!r}")
    return AuthConfig(
        enabled=bool(data.get("enabled", True)),
        user_collection=str(data.get("user_collection") or ""),
        login_fields=LoginFieldMapping(
            email_field=str(login.get("email_field") or ""),
            username_field=str(login.get("username_field") or ""),
            allow_both=bool(login.get("allow_both", False)),
        ),
        password_field=str(data.get("password_field") or ""),
        response_fields=[str(name) for name in _require_list(data.get("response_fields") or [], "response_fields")],
        token_expiration=token_expiration,
        require_email_verification=bool(data.get("require_email_verification", False)),
        allow_signup=bool(data.get("allow_signup", True)),
    )


def spec_to_payload(spec: AuthSystemSpec) -> dict[str, Any]:
    """Request body for the schema service's create-schema call."""
    return {
        "collection_name": spec.collection_name,
        "fields": [field_to_dict(f) for f in spec.fields],
        "auth_config": auth_config_to_dict(spec.auth_config),
    }


def stored_schema_from_dict(data: dict[str, Any]) -> StoredSchema:
    """Build a StoredSchema from a service record. Raises ValueError on a malformed record."""
    data = _require_dict(data, "schema record")
    raw_auth: Optional[dict] = data.get("auth_config")
    return StoredSchema(
        id=str(data.get("id", "")),
        collection_name=str(data.get("collection_name", "")),
        fields=fields_from_list(data.get("fields") or []),
        auth_config=auth_config_from_dict(raw_auth) if raw_auth else None,
        user_id=data.get("user_id"),
        created_at=str(data.get("created_at") or ""),
        updated_at=str(data.get("updated_at") or ""),
        is_active=bool(data.get("is_active", True)),
    )
