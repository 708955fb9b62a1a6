"""
tests/conftest.py -- Shared test fixtures for schemaauth.

This module provides:
  - registry / engine / session: fresh domain objects on the default seed
  - _patch_lifespan(): wires a test SessionCache and collaborators into
    app.state, bypassing real startup
  - api_client: TestClient against the real FastAPI app with the patched lifespan

Environment must be set before any api/ or core/ import: api/main.py reads
get_settings() at import time for trusted hosts and rate limits.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before importing api.main (settings are read at import time).
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("SESSION_RATE_LIMIT", "1000/minute")
os.environ.setdefault("COMMIT_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.engine import AuthConfigEngine
from auth.session import AuthoringSession
from cache.store import SessionCache
from registry.field_registry import FieldRegistry

# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> FieldRegistry:
    """Default "users" seed: id, email, password, name, created_at."""
    return FieldRegistry()


@pytest.fixture
def engine(registry: FieldRegistry) -> AuthConfigEngine:
    return AuthConfigEngine(registry)


@pytest.fixture
def session() -> AuthoringSession:
    return AuthoringSession("customers", connection_check=lambda: True)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


class _Collaborators:
    """Mutable knobs a test can flip while the client is running."""

    def __init__(self) -> None:
        self.connected = True


def _patch_lifespan(collab: _Collaborators):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine so shutdown can .cancel() a
    real asyncio.Task.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.sessions = SessionCache(ttl=3600)
        app.state.connection_check = lambda: collab.connected
        app.state.schema_client = None
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()
        app.state.sessions.close()

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, _Collaborators], None, None]:
    """Yield (client, collaborators).

    collaborators.connected drives the backing-connection check. Tests that
    need a schema service assign client.app.state.schema_client directly.
    """
    collab = _Collaborators()
    app.router.lifespan_context = _patch_lifespan(collab)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, collab
