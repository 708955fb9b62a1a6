"""
API request and response models for the schemaauth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in registry/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two.

Separation of concerns: registry/ + auth/ models = domain truth; api/ models = API contract.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import TOKEN_EXPIRATION_MAX, TOKEN_EXPIRATION_MIN, AuthConfig, AuthSystemSpec, Endpoint
from auth.session import AuthoringSession
from auth.validation import ValidationError
from registry.models import Field as SchemaField
from schemas.mappers import auth_config_to_dict, field_to_dict

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FieldTypeEnum(str, Enum):
    string = "string"
    number = "number"
    boolean = "boolean"
    array = "array"
    object = "object"
    date = "date"


class VisibilityEnum(str, Enum):
    public = "public"
    private = "private"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class FieldIn(BaseModel):
    """One field in a POST /sessions body. name may be empty while drafting."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", max_length=100)
    type: FieldTypeEnum = FieldTypeEnum.string
    visibility: VisibilityEnum = VisibilityEnum.public
    required: bool = False
    default: Optional[Any] = None
    description: Optional[str] = Field(default=None, max_length=500)


class FieldPatch(BaseModel):
    """Body for PATCH /sessions/{id}/fields/{index}.

    Only sent, non-null keys are applied; a null value means "leave as is".
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=100)
    type: Optional[FieldTypeEnum] = None
    visibility: Optional[VisibilityEnum] = None
    required: Optional[bool] = None
    default: Optional[Any] = None
    description: Optional[str] = Field(default=None, max_length=500)


class LoginFieldsPatch(BaseModel):
    email_field: Optional[str] = None
    username_field: Optional[str] = None
    allow_both: Optional[bool] = None


class AuthConfigPatch(BaseModel):
    """Body for PATCH /sessions/{id}/auth-config. Only sent keys are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    enabled: Optional[bool] = None
    user_collection: Optional[str] = Field(default=None, max_length=100)
    login_fields: Optional[LoginFieldsPatch] = None
    password_field: Optional[str] = None
    response_fields: Optional[list[str]] = None
    token_expiration: Optional[int] = Field(default=None, ge=TOKEN_EXPIRATION_MIN, le=TOKEN_EXPIRATION_MAX)
    require_email_verification: Optional[bool] = None
    allow_signup: Optional[bool] = None


class SessionCreate(BaseModel):
    """Body for POST /sessions. Omitted fields / auth_config use the "users" seed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    collection_name: str = Field(default="", max_length=100)
    fields: Optional[list[FieldIn]] = Field(default=None, min_length=1, max_length=200)
    auth_config: Optional[AuthConfigPatch] = None


class SessionPatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    collection_name: str = Field(max_length=100)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class FieldOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    visibility: str
    required: bool
    default: Optional[Any] = None
    description: Optional[str] = None

    @classmethod
    def from_field(cls, f: SchemaField) -> "FieldOut":
        return cls(**field_to_dict(f))


class LoginFieldsOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    email_field: str
    username_field: str
    allow_both: bool


class AuthConfigOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool
    user_collection: str
    login_fields: LoginFieldsOut
    password_field: str
    response_fields: list[str]
    token_expiration: int
    require_email_verification: bool
    allow_signup: bool

    @classmethod
    def from_config(cls, config: AuthConfig) -> "AuthConfigOut":
        return cls(**auth_config_to_dict(config))


class EndpointOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: str
    path: str

    @classmethod
    def from_endpoint(cls, endpoint: Endpoint) -> "EndpointOut":
        return cls(method=endpoint.method, path=endpoint.path)


class ValidationErrorOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    message: str

    @classmethod
    def from_error(cls, error: ValidationError) -> "ValidationErrorOut":
        return cls(code=error.code.value, message=error.message)


class SessionResponse(BaseModel):
    """Full view of an authoring session, including live-derived data."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    state: str
    collection_name: str
    fields: list[FieldOut]
    auth_config: AuthConfigOut
    endpoints: list[EndpointOut]
    login_field_choices: list[str]
    response_field_choices: list[str]
    last_errors: list[ValidationErrorOut] = Field(default_factory=list)

    @classmethod
    def from_session(cls, session_id: str, session: AuthoringSession) -> "SessionResponse":
        """Factory Method: the session -> response mapping lives with the model."""
        return cls(
            session_id=session_id,
            state=session.state.value,
            collection_name=session.collection_name,
            fields=[FieldOut.from_field(f) for f in session.registry],
            auth_config=AuthConfigOut.from_config(session.config),
            endpoints=[EndpointOut.from_endpoint(e) for e in session.endpoints()],
            login_field_choices=session.engine.login_field_choices(),
            response_field_choices=session.engine.response_field_choices(),
            last_errors=[ValidationErrorOut.from_error(e) for e in session.last_errors],
        )


class ValidationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: list[ValidationErrorOut]


class AuthSystemSpecOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    collection_name: str
    fields: list[FieldOut]
    auth_config: AuthConfigOut

    @classmethod
    def from_spec(cls, spec: AuthSystemSpec) -> "AuthSystemSpecOut":
        return cls(
            collection_name=spec.collection_name,
            fields=[FieldOut.from_field(f) for f in spec.fields],
            auth_config=AuthConfigOut.from_config(spec.auth_config),
        )


class StoredSchemaOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: str


class CommitResponse(BaseModel):
    """Response for POST /sessions/{id}/commit.

    stored is None when no schema service is configured; the snapshot is
    still returned and the session is still reset.
    """

    model_config = ConfigDict(frozen=True)

    spec: AuthSystemSpecOut
    endpoints: list[EndpointOut]
    stored: Optional[StoredSchemaOut] = None


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
