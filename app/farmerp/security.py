from __future__ import annotations

import secrets
import threading
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Request, session

LOGIN_RATE_LIMIT = 5
LOGIN_RATE_WINDOW = 300  # seconds


def ensure_csrf_token() -> str:
    """Ensure a CSRF token exists in the session and return it."""
    token = session.get("csrf_token")
    if not token:
        token = secrets.token_urlsafe(32)
        session["csrf_token"] = token
    return token


def validate_csrf(req: Request) -> bool:
    """Validate CSRF token from form field or header."""
    token = req.headers.get("X-CSRF-Token") or req.form.get("csrf_token")
    expected = session.get("csrf_token")
    return bool(token and expected and secrets.compare_digest(token, expected))


class LoginRateLimiter:
    """Sliding-window limit of authentication attempts per client address."""

    def __init__(self, limit: int = LOGIN_RATE_LIMIT, window_seconds: int = LOGIN_RATE_WINDOW) -> None:
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self._attempts: dict[str, list[datetime]] = defaultdict(list)
        self._lock = threading.Lock()

    def is_limited(self, key: str) -> bool:
        cutoff = datetime.utcnow() - self.window
        with self._lock:
            recent = [t for t in self._attempts.get(key, ()) if t > cutoff]
            if not recent:
                self._attempts.pop(key, None)
                return False
            self._attempts[key] = recent
            return len(recent) >= self.limit

    def record(self, key: str) -> None:
        with self._lock:
            self._attempts[key].append(datetime.utcnow())

    def reset(self, key: str) -> None:
        with self._lock:
            self._attempts.pop(key, None)
