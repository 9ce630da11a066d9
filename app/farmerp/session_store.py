"""
Session store: the authenticated identity and its profile.

One `SessionContext` is created per request (see `create_app`) and handed to
whatever needs the current user through `g.session_ctx`. It subscribes to the
auth service on `initialize()` and must be closed to drop that subscription.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from app.farmerp.auth_service import AuthEvent, AuthService, AuthSession, Identity, Subscription
from app.farmerp.data_service import DataService
from app.farmerp.models import DEFAULT_ROLE

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionContext:
    def __init__(self, auth: AuthService, data: DataService) -> None:
        self._auth = auth
        self._data = data
        self._subscription: Subscription | None = None
        self.state = SessionState.LOADING
        self.session: AuthSession | None = None
        self.user: Identity | None = None
        self.profile: dict[str, Any] | None = None

    # ---------- derived ----------
    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED and self.user is not None

    @property
    def access_token(self) -> str | None:
        return self.session.access_token if self.session else None

    @property
    def role(self) -> str | None:
        return (self.profile or {}).get("role")

    # ---------- state ----------
    def _load_profile(self, user_id: str) -> dict[str, Any] | None:
        return self._data.select("user_profiles", eq={"id": user_id}, limit=1).first()

    def _set_session(self, session: AuthSession | None) -> None:
        if session is not None:
            self.session = session
            self.user = session.user
            self.profile = self._load_profile(session.user.id)
            self.state = SessionState.AUTHENTICATED
        else:
            self._clear()

    def _clear(self) -> None:
        self.session = None
        self.user = None
        self.profile = None
        self.state = SessionState.ANONYMOUS

    def _on_auth_change(self, event: AuthEvent, session: AuthSession) -> None:
        if event in (AuthEvent.SIGNED_OUT, AuthEvent.EXPIRED):
            if self.access_token == session.access_token:
                self._clear()
            return
        # Only transitions of the identity already bound here re-populate it;
        # anonymous contexts pick up sessions through initialize/sign_in.
        if self.user is None or self.user.id != session.user.id:
            return
        if session.access_token == self.access_token:
            self._set_session(session)
        else:
            self.profile = self._load_profile(session.user.id)

    # ---------- lifecycle ----------
    def initialize(self, access_token: str | None = None) -> SessionState:
        self.state = SessionState.LOADING
        session = self._auth.get_session(access_token)
        self._set_session(session)
        if self._subscription is None:
            self._subscription = self._auth.on_auth_state_change(self._on_auth_change)
        return self.state

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    # ---------- operations ----------
    def sign_in(self, email: str, password: str) -> AuthSession:
        session = self._auth.sign_in_with_password(email, password)
        self._set_session(session)
        return session

    def sign_up(self, email: str, password: str, full_name: str) -> AuthSession:
        session = self._auth.sign_up(email, password)
        try:
            profile = self._data.insert(
                "user_profiles",
                {"id": session.user.id, "full_name": (full_name or "").strip(), "role": DEFAULT_ROLE},
            )
        except Exception:
            logger.warning("Profile creation failed; removing identity user_id=%s", session.user.id)
            self._auth.delete_identity(session.user.id)
            self._clear()
            raise
        self.session = session
        self.user = session.user
        self.profile = profile
        self.state = SessionState.AUTHENTICATED
        return session

    def sign_out(self) -> None:
        token = self.access_token
        try:
            self._auth.sign_out(token)
        finally:
            self._clear()
