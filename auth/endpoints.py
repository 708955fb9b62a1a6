"""
auth/endpoints.py -- Derive the auth API surface from a configuration.

Path grammar: /api/{collection_name}/auth/{signup|login|validate}

The result is an order-stable pure function of (collection_name, config):
signup (only when allow_signup) comes first, then login, then validate.
Consumers (preview, docs, the external auth runtime) render it in this order.
"""

from __future__ import annotations

from auth.models import AuthConfig, Endpoint

_PATH = "/api/{collection}/auth/{action}"


def derived_endpoints(collection_name: str, config: AuthConfig) -> list[Endpoint]:
    endpoints: list[Endpoint] = []
    if config.allow_signup:
        endpoints.append(Endpoint("POST", _PATH.format(collection=collection_name, action="signup")))
    endpoints.append(Endpoint("POST", _PATH.format(collection=collection_name, action="login")))
    endpoints.append(Endpoint("GET", _PATH.format(collection=collection_name, action="validate")))
    return endpoints
