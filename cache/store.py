"""
cache/store.py -- In-memory, TTL-bounded store for authoring sessions.

The HTTP API keeps one AuthoringSession per operator workflow between
requests. Sessions are never persisted (a committed snapshot is what gets
stored, by the schema service), so a process-local dict is enough. Idle
sessions expire after `ttl` seconds; api/main.py purges them periodically.

Every get() refreshes the session's last-used time.

Usage:
    cache = SessionCache(ttl=3600)
    session_id = cache.create(AuthoringSession("customers"))
    session = cache.get(session_id)      # AuthoringSession or None
    cache.delete(session_id)
    cache.purge_expired()                # call periodically to trim idle sessions
"""

import secrets
import threading
import time
from typing import Optional

from auth.session import AuthoringSession

_DEFAULT_TTL = 60 * 60  # 1 hour in seconds


class SessionCache:
    def __init__(self, ttl: int = _DEFAULT_TTL) -> None:
        self.ttl = ttl
        # Route handlers run in a thread pool; the lock guards the dict only,
        # not the sessions inside it.
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[AuthoringSession, float]] = {}

    def create(self, session: AuthoringSession) -> str:
        """Store session under a new random id and return the id."""
        session_id = secrets.token_urlsafe(16)
        with self._lock:
            self._entries[session_id] = (session, time.monotonic())
        return session_id

    def get(self, session_id: str) -> Optional[AuthoringSession]:
        """Return the session if it exists and hasn't expired."""
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            session, last_used = entry
            now = time.monotonic()
            if now - last_used > self.ttl:
                del self._entries[session_id]
                return None
            self._entries[session_id] = (session, now)
            return session

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._entries.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        """Delete all sessions idle longer than TTL. Returns number removed."""
        cutoff = time.monotonic() - self.ttl
        with self._lock:
            expired = [sid for sid, (_, last_used) in self._entries.items() if last_used < cutoff]
            for sid in expired:
                del self._entries[sid]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def close(self) -> None:
        with self._lock:
            self._entries.clear()
