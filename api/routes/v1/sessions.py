"""
api/routes/v1/sessions.py -- Authoring-session routes for the schemaauth REST API.

Routes:
  POST   /sessions                              -- start a session (optional draft body)
  GET    /sessions/{session_id}                 -- full session view
  PATCH  /sessions/{session_id}                 -- set collection name
  DELETE /sessions/{session_id}                 -- discard session
  POST   /sessions/{session_id}/fields          -- append a field
  PATCH  /sessions/{session_id}/fields/{index}  -- merge attributes into a field
  DELETE /sessions/{session_id}/fields/{index}  -- remove a field (409 if last one)
  PATCH  /sessions/{session_id}/auth-config     -- change auth configuration
  GET    /sessions/{session_id}/endpoints       -- derived auth endpoints
  POST   /sessions/{session_id}/validate        -- run commit validation
  POST   /sessions/{session_id}/commit          -- validate, snapshot, store, reset

Every mutation goes through AuthoringSession so field renames and removals
repair the auth config before the response is built. Handlers only map HTTP
to session calls and session results to api/models.py.

Commit:
  422 with code=<validation code> when validation fails (session kept).
  409 while a previous commit for the same session is still in flight.
  502 when the schema service fails; its message is passed through as-is.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from api.limiter import limiter
from api.models import (
    AuthConfigPatch,
    AuthSystemSpecOut,
    CommitResponse,
    EndpointOut,
    ErrorDetail,
    FieldIn,
    FieldPatch,
    SessionCreate,
    SessionPatch,
    SessionResponse,
    StoredSchemaOut,
    ValidationErrorOut,
    ValidationResponse,
)
from auth.endpoints import derived_endpoints
from auth.session import AuthoringSession, CommitRefused, SessionState
from cache.store import SessionCache
from core.config import get_settings
from schemas.client import SchemaServiceClient, SchemaServiceError
from schemas.mappers import field_from_dict

router = APIRouter()

_settings = get_settings()
_SESSION_LIMIT = _settings.session_rate_limit
_COMMIT_LIMIT = _settings.commit_rate_limit


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sessions(request: Request) -> SessionCache:
    return request.app.state.sessions


def _get_session(request: Request, session_id: str) -> AuthoringSession:
    session = _sessions(request).get(session_id)
    if session is None:
        raise HTTPException(
            status_code=404,
            detail=ErrorDetail(code="session_not_found", message=f"No authoring session '{session_id}'.").model_dump(),
        )
    return session


def _field_not_found(index: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=ErrorDetail(code="field_not_found", message=f"No field at index {index}.").model_dump(),
    )


def _bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=ErrorDetail(code="invalid_value", message=str(exc)).model_dump(),
    )


def _config_changes(body: AuthConfigPatch) -> dict:
    return body.model_dump(exclude_unset=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


@limiter.limit(_SESSION_LIMIT)
@router.post("/sessions", response_model=SessionResponse, status_code=201)
def create_session(request: Request, body: SessionCreate | None = None) -> SessionResponse:
    """Start an authoring session seeded with the default "users" fields.

    A body may carry a full draft: collection name, fields and auth config.
    The draft config is normalized against the draft fields on load.
    """
    body = body or SessionCreate()
    session = AuthoringSession(connection_check=request.app.state.connection_check)
    fields = [field_from_dict(f.model_dump(mode="json")) for f in body.fields] if body.fields else None
    session.load_draft(collection_name=body.collection_name, fields=fields)
    if body.auth_config is not None:
        try:
            session.update_auth_config(**_config_changes(body.auth_config))
        except ValueError as e:
            raise _bad_request(e) from e
    session_id = _sessions(request).create(session)
    return SessionResponse.from_session(session_id, session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(request: Request, session_id: str) -> SessionResponse:
    return SessionResponse.from_session(session_id, _get_session(request, session_id))


@limiter.limit(_SESSION_LIMIT)
@router.patch("/sessions/{session_id}", response_model=SessionResponse)
def rename_collection(request: Request, session_id: str, body: SessionPatch) -> SessionResponse:
    session = _get_session(request, session_id)
    session.set_collection_name(body.collection_name)
    return SessionResponse.from_session(session_id, session)


@router.delete("/sessions/{session_id}", status_code=204)
def discard_session(request: Request, session_id: str) -> None:
    if not _sessions(request).delete(session_id):
        _get_session(request, session_id)  # raises 404


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------


@limiter.limit(_SESSION_LIMIT)
@router.post("/sessions/{session_id}/fields", response_model=SessionResponse, status_code=201)
def add_field(request: Request, session_id: str, body: FieldIn | None = None) -> SessionResponse:
    """Append a field. Without a body the field is empty, public, string, optional."""
    session = _get_session(request, session_id)
    index = session.add_field()
    if body is not None:
        changes = body.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if changes:
            try:
                session.update_field(index, changes)
            except ValueError as e:
                session.remove_field(index)
                raise _bad_request(e) from e
    return SessionResponse.from_session(session_id, session)


@limiter.limit(_SESSION_LIMIT)
@router.patch("/sessions/{session_id}/fields/{index}", response_model=SessionResponse)
def update_field(request: Request, session_id: str, index: int, body: FieldPatch) -> SessionResponse:
    """Merge the sent attributes into the field; a name change repairs auth references."""
    session = _get_session(request, session_id)
    changes = body.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    try:
        applied = session.update_field(index, changes)
    except ValueError as e:
        raise _bad_request(e) from e
    if not applied:
        raise _field_not_found(index)
    return SessionResponse.from_session(session_id, session)


@limiter.limit(_SESSION_LIMIT)
@router.delete("/sessions/{session_id}/fields/{index}", response_model=SessionResponse)
def remove_field(request: Request, session_id: str, index: int) -> SessionResponse:
    """Remove a field and clear every auth reference to its name."""
    session = _get_session(request, session_id)
    if not 0 <= index < len(session.registry):
        raise _field_not_found(index)
    if not session.remove_field(index):
        raise HTTPException(
            status_code=409,
            detail=ErrorDetail(
                code="last_field",
                message="A schema must keep at least one field.",
            ).model_dump(),
        )
    return SessionResponse.from_session(session_id, session)


# ---------------------------------------------------------------------------
# Auth configuration and derived data
# ---------------------------------------------------------------------------


@limiter.limit(_SESSION_LIMIT)
@router.patch("/sessions/{session_id}/auth-config", response_model=SessionResponse)
def update_auth_config(request: Request, session_id: str, body: AuthConfigPatch) -> SessionResponse:
    """Apply the sent keys. Response field choices that are unknown, private or
    the password field are dropped rather than rejected."""
    session = _get_session(request, session_id)
    try:
        session.update_auth_config(**_config_changes(body))
    except ValueError as e:
        raise _bad_request(e) from e
    return SessionResponse.from_session(session_id, session)


@router.get("/sessions/{session_id}/endpoints", response_model=list[EndpointOut])
def get_endpoints(request: Request, session_id: str) -> list[EndpointOut]:
    """Live preview of the auth routes the external runtime will expose, in order."""
    session = _get_session(request, session_id)
    return [EndpointOut.from_endpoint(e) for e in session.endpoints()]


@router.post("/sessions/{session_id}/validate", response_model=ValidationResponse)
def validate_session(request: Request, session_id: str) -> ValidationResponse:
    session = _get_session(request, session_id)
    errors = session.validate()
    return ValidationResponse(valid=not errors, errors=[ValidationErrorOut.from_error(e) for e in errors])


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------


@limiter.limit(_COMMIT_LIMIT)
@router.post("/sessions/{session_id}/commit", response_model=CommitResponse, status_code=201)
def commit_session(request: Request, session_id: str) -> CommitResponse:
    """Validate and snapshot the session, hand it to the schema service, reset the session.

    Without a configured schema service the snapshot is returned unstored.
    """
    session = _get_session(request, session_id)
    if session.state is SessionState.submitting:
        raise HTTPException(
            status_code=409,
            detail=ErrorDetail(code="commit_in_progress", message="A commit is already in flight.").model_dump(),
        )

    client: SchemaServiceClient | None = request.app.state.schema_client
    try:
        if client is None:
            spec = session.commit()
            stored = None
        else:
            stored = session.submit(client)
            spec = session.last_committed
    except CommitRefused as e:
        first = e.errors[0]
        raise HTTPException(
            status_code=422,
            detail=ErrorDetail(code=first.code.value, message=first.message).model_dump(),
        ) from e
    except SchemaServiceError as e:
        raise HTTPException(
            status_code=502,
            detail=ErrorDetail(code="schema_service_error", message=str(e)).model_dump(),
        ) from e

    return CommitResponse(
        spec=AuthSystemSpecOut.from_spec(spec),
        endpoints=[EndpointOut.from_endpoint(e) for e in derived_endpoints(spec.collection_name, spec.auth_config)],
        stored=StoredSchemaOut(id=stored.id, created_at=stored.created_at) if stored is not None else None,
    )
