"""
schemas/client.py -- HTTP client for the remote schema persistence service.

The authoring engine never persists anything itself. A committed
AuthSystemSpec is handed to SchemaServiceClient.create_schema(), which
returns the stored record (id + timestamps) or raises SchemaServiceError.

Failure policy: no retries, no interpretation. Transport errors and non-2xx
responses both surface as SchemaServiceError carrying the service's own
{"error": "..."} message when there is one. Timeout and retry policy belong
to whoever operates the transport.

Usage:
    client = SchemaServiceClient("https://schemas.example.com/api", api_key="...")
    stored = client.create_schema(spec)
    schemas = client.list_auth_schemas()
    client.delete_schema(stored.id)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from auth.models import AuthSystemSpec
from schemas.mappers import spec_to_payload, stored_schema_from_dict
from schemas.models import StoredSchema

logger = logging.getLogger("schemaauth.schemas")

_TIMEOUT = 10  # seconds


class SchemaServiceError(Exception):
    """The schema service call failed. str(exc) is safe to show to the operator."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SchemaServiceClient:
    def __init__(self, base_url: str, api_key: str = "", timeout: float = _TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # One session per client for connection pooling. max_redirects=3
        # replaces the requests default of 30.
        self._session = requests.Session()
        self._session.max_redirects = 3
        if api_key:
            self._session.headers["X-API-Key"] = api_key

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("Schema service %s %s failed: %s", method, path, e)
            raise SchemaServiceError(f"Schema service unreachable: {e}") from e

        if not resp.ok:
            message = _error_message(resp)
            logger.warning("Schema service %s %s returned %d: %s", method, path, resp.status_code, message)
            raise SchemaServiceError(message, status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise SchemaServiceError("Schema service returned a malformed response") from e

    def create_schema(self, spec: AuthSystemSpec) -> StoredSchema:
        stored = _parse(self._request("POST", "/schemas", json=spec_to_payload(spec)))
        logger.info("Stored schema %r as %s", stored.collection_name, stored.id)
        return stored

    def list_schemas(self) -> list[StoredSchema]:
        data = self._request("GET", "/schemas")
        if not isinstance(data, list):
            raise SchemaServiceError("Schema service returned a malformed response")
        return [_parse(item) for item in data]

    def list_auth_schemas(self) -> list[StoredSchema]:
        """Only the schemas that carry an enabled auth configuration."""
        return [s for s in self.list_schemas() if s.auth_config is not None and s.auth_config.enabled]

    def get_schema(self, schema_id: str) -> StoredSchema:
        return _parse(self._request("GET", f"/schemas/{schema_id}"))

    def delete_schema(self, schema_id: str) -> str:
        data = self._request("DELETE", f"/schemas/{schema_id}")
        return str(data.get("message", "")) if isinstance(data, dict) else ""

    def close(self) -> None:
        self._session.close()


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"Schema service request failed (HTTP {resp.status_code})"


def _parse(record: Any) -> StoredSchema:
    try:
        return stored_schema_from_dict(record)
    except ValueError as e:
        raise SchemaServiceError(f"Schema service returned a malformed schema record: {e}") from e
