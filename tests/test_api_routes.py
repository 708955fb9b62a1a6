"""
tests/test_api_routes.py -- Integration tests for the authoring-session routes.

These tests exercise the full stack: FastAPI routing -> SessionCache ->
AuthoringSession / AuthConfigEngine -> response model serialization.

Coverage:
  - Session lifecycle: create (empty and with a draft), get, rename, delete, 404s
  - Field routes: add, rename with reference repair, remove, last-field 409
  - Auth config PATCH: nested login fields, range check, invalid values
  - Validate and commit: 422 with validation code, 201 snapshot, reset after commit
  - Schema service collaborator: stored record returned, 502 on failure, 409 in flight

Fixtures used (from conftest.py):
  - api_client: (client, collaborators) -- collaborators.connected drives the
    backing-connection check.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from auth.session import SessionState
from schemas.client import SchemaServiceError
from schemas.models import StoredSchema

BASE = "/api/v1/sessions"


def _create(client: TestClient, **body) -> dict:
    resp = client.post(BASE, json=body or None)
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()


class TestSessionLifecycle:
    def test_create_empty_session(self, api_client) -> None:
        """POST /sessions without a body seeds the default users fields and config."""
        client, _ = api_client
        data = _create(client)
        assert data["state"] == "editing"
        assert data["collection_name"] == ""
        assert [f["name"] for f in data["fields"]] == ["id", "email", "password", "name", "created_at"]
        assert data["auth_config"]["password_field"] == "password"
        assert data["auth_config"]["response_fields"] == ["id", "email", "name", "created_at"]
        assert data["response_field_choices"] == ["id", "email", "name", "created_at"]

    def test_create_with_draft(self, api_client) -> None:
        """A draft body replaces the seed; its auth_config is applied over the defaults."""
        client, _ = api_client
        data = _create(
            client,
            collection_name="members",
            fields=[
                {"name": "login", "required": True},
                {"name": "secret", "visibility": "private"},
            ],
            auth_config={"login_fields": {"email_field": "login"}, "password_field": "secret"},
        )
        assert data["collection_name"] == "members"
        assert data["auth_config"]["login_fields"]["email_field"] == "login"
        assert data["auth_config"]["response_fields"] == []
        assert data["endpoints"][0]["path"] == "/api/members/auth/signup"

    def test_create_with_bad_field_type(self, api_client) -> None:
        client, _ = api_client
        resp = client.post(BASE, json={"fields": [{"name": "x", "type": "relation"}]})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    def test_get_and_rename(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.patch(f"{BASE}/{sid}", json={"collection_name": "orders"})
        assert resp.status_code == 200
        data = client.get(f"{BASE}/{sid}").json()
        assert data["collection_name"] == "orders"
        assert [e["path"] for e in data["endpoints"]] == [
            "/api/orders/auth/signup",
            "/api/orders/auth/login",
            "/api/orders/auth/validate",
        ]

    def test_delete(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        assert client.delete(f"{BASE}/{sid}").status_code == 204
        resp = client.get(f"{BASE}/{sid}")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "session_not_found"

    def test_delete_unknown(self, api_client) -> None:
        client, _ = api_client
        assert client.delete(f"{BASE}/nope").status_code == 404


class TestFieldRoutes:
    def test_add_blank_field(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.post(f"{BASE}/{sid}/fields")
        assert resp.status_code == 201
        added = resp.json()["fields"][-1]
        assert added == {
            "name": "",
            "type": "string",
            "visibility": "public",
            "required": False,
            "default": None,
            "description": None,
        }

    def test_add_field_with_body(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.post(f"{BASE}/{sid}/fields", json={"name": "age", "type": "number"})
        data = resp.json()
        assert data["fields"][-1]["name"] == "age"
        assert "age" not in data["login_field_choices"]

    def test_rename_repairs_references(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.patch(f"{BASE}/{sid}/fields/1", json={"name": "primary_email"})
        assert resp.status_code == 200
        config = resp.json()["auth_config"]
        assert config["login_fields"]["email_field"] == "primary_email"
        assert config["response_fields"][1] == "primary_email"

    def test_null_values_leave_field_unchanged(self, api_client) -> None:
        """Explicit nulls in a field PATCH are treated as "not sent"."""
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.patch(f"{BASE}/{sid}/fields/1", json={"name": None, "type": None, "required": None})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["fields"][1] == {
            "name": "email",
            "type": "string",
            "visibility": "public",
            "required": True,
            "default": None,
            "description": None,
        }
        assert data["auth_config"]["login_fields"]["email_field"] == "email"

    def test_make_field_private(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        data = client.patch(f"{BASE}/{sid}/fields/3", json={"visibility": "private"}).json()
        assert "name" not in data["auth_config"]["response_fields"]

    def test_update_out_of_range(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.patch(f"{BASE}/{sid}/fields/9", json={"name": "x"})
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "field_not_found"

    def test_remove_password_field(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.delete(f"{BASE}/{sid}/fields/2")
        assert resp.status_code == 200
        assert resp.json()["auth_config"]["password_field"] == ""

    def test_last_field_cannot_be_removed(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client, fields=[{"name": "only"}])["session_id"]
        resp = client.delete(f"{BASE}/{sid}/fields/0")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "last_field"

    def test_remove_out_of_range(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        assert client.delete(f"{BASE}/{sid}/fields/-1").status_code == 404


class TestAuthConfigRoutes:
    def test_patch_nested_login_fields(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.patch(
            f"{BASE}/{sid}/auth-config",
            json={"login_fields": {"username_field": "name", "allow_both": True}, "token_expiration": 72},
        )
        assert resp.status_code == 200
        config = resp.json()["auth_config"]
        assert config["login_fields"] == {"email_field": "email", "username_field": "name", "allow_both": True}
        assert config["token_expiration"] == 72

    def test_password_never_in_response_fields(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.patch(f"{BASE}/{sid}/auth-config", json={"response_fields": ["password", "email"]})
        assert resp.json()["auth_config"]["response_fields"] == ["email"]

    @pytest.mark.parametrize("hours", [0, 8761])
    def test_token_expiration_out_of_range(self, api_client, hours) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        resp = client.patch(f"{BASE}/{sid}/auth-config", json={"token_expiration": hours})
        assert resp.status_code == 422

    def test_signup_disabled_endpoints(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client, collection_name="orders")["session_id"]
        client.patch(f"{BASE}/{sid}/auth-config", json={"allow_signup": False})
        resp = client.get(f"{BASE}/{sid}/endpoints")
        assert resp.json() == [
            {"method": "POST", "path": "/api/orders/auth/login"},
            {"method": "GET", "path": "/api/orders/auth/validate"},
        ]


class TestValidateAndCommit:
    def test_validate_reports_first_error(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client)["session_id"]
        data = client.post(f"{BASE}/{sid}/validate").json()
        assert data == {
            "valid": False,
            "errors": [{"code": "missing_table_name", "message": "Please provide a table name"}],
        }
        assert client.get(f"{BASE}/{sid}").json()["last_errors"][0]["code"] == "missing_table_name"

    def test_commit_without_connection(self, api_client) -> None:
        client, collab = api_client
        collab.connected = False
        sid = _create(client, collection_name="customers")["session_id"]
        resp = client.post(f"{BASE}/{sid}/commit")
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "missing_mongo_connection"

    def test_commit_refused_keeps_session(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client, collection_name="customers")["session_id"]
        client.delete(f"{BASE}/{sid}/fields/2")
        resp = client.post(f"{BASE}/{sid}/commit")
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "missing_password_field"
        assert client.get(f"{BASE}/{sid}").json()["collection_name"] == "customers"

    def test_commit_without_schema_service(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client, collection_name="billing")["session_id"]
        resp = client.post(f"{BASE}/{sid}/commit")
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["stored"] is None
        assert data["spec"]["auth_config"]["user_collection"] == "billing_users"
        assert data["endpoints"][1]["path"] == "/api/billing/auth/login"

        after = client.get(f"{BASE}/{sid}").json()
        assert after["state"] == "committed"
        assert after["collection_name"] == ""

    def test_commit_with_schema_service(self, api_client) -> None:
        client, _ = api_client
        store = MagicMock()
        store.create_schema.return_value = StoredSchema(
            id="65f0c0ffee", collection_name="customers", created_at="2026-10-16T09:00:00Z"
        )
        client.app.state.schema_client = store
        sid = _create(client, collection_name="customers")["session_id"]
        resp = client.post(f"{BASE}/{sid}/commit")
        assert resp.status_code == 201, resp.text
        assert resp.json()["stored"] == {"id": "65f0c0ffee", "created_at": "2026-10-16T09:00:00Z"}
        store.create_schema.assert_called_once()

    def test_schema_service_failure(self, api_client) -> None:
        client, _ = api_client
        store = MagicMock()
        store.create_schema.side_effect = SchemaServiceError("Collection 'customers' already exists", 400)
        client.app.state.schema_client = store
        sid = _create(client, collection_name="customers")["session_id"]
        resp = client.post(f"{BASE}/{sid}/commit")
        assert resp.status_code == 502
        assert resp.json()["error"] == {
            "code": "schema_service_error",
            "message": "Collection 'customers' already exists",
            "detail": None,
        }
        assert client.get(f"{BASE}/{sid}").json()["state"] == "editing"

    def test_commit_in_flight(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client, collection_name="customers")["session_id"]
        client.app.state.sessions.get(sid).state = SessionState.submitting
        resp = client.post(f"{BASE}/{sid}/commit")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "commit_in_progress"

    def test_validate_does_not_clear_commit_in_flight(self, api_client) -> None:
        client, _ = api_client
        sid = _create(client, collection_name="customers")["session_id"]
        client.app.state.sessions.get(sid).state = SessionState.submitting
        assert client.post(f"{BASE}/{sid}/validate").json()["valid"] is True
        resp = client.post(f"{BASE}/{sid}/commit")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "commit_in_progress"
