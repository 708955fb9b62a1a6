"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and components fields
  - components report session count and collaborator configuration
  - Untrusted Host headers are rejected before routing
"""

from __future__ import annotations


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _ = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"
    assert data["components"]["app"] == "ok"
    assert data["components"]["schema_service"] == "disabled"


def test_health_counts_sessions(api_client):
    client, _ = api_client
    assert client.get("/api/v1/health").json()["components"]["sessions"] == "0"
    client.post("/api/v1/sessions")
    assert client.get("/api/v1/health").json()["components"]["sessions"] == "1"


def test_health_reports_missing_connection(api_client):
    client, collab = api_client
    assert client.get("/api/v1/health").json()["components"]["mongo_connection"] == "configured"
    collab.connected = False
    assert client.get("/api/v1/health").json()["components"]["mongo_connection"] == "missing"


def test_untrusted_host_rejected(api_client):
    client, _ = api_client
    resp = client.get("/api/v1/health", headers={"host": "evil.example.com"})
    assert resp.status_code == 400
