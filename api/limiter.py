"""
api/limiter.py -- Shared slowapi rate limiter for the authoring API.

api/main.py mounts it as middleware; api/routes/v1/sessions.py applies
per-route limits with @limiter.limit(). One module-level instance so every
route counts against the same in-memory store.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
