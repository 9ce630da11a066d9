"""
Password authentication and session tokens.

Identities live in `users`, issued tokens in `auth_sessions`. Every session
transition is broadcast to the listeners registered through
`on_auth_state_change`.
"""
from __future__ import annotations

import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from werkzeug.security import check_password_hash, generate_password_hash

from app.farmerp.errors import AuthError, IdentityExistsError, InvalidCredentialsError
from app.farmerp.models import AuthSession as AuthSessionRow
from app.farmerp.models import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class Identity:
    id: str
    email: str


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    user: Identity
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= datetime.utcnow()


AuthListener = Callable[[AuthEvent, "AuthSession"], None]


class Subscription:
    def __init__(self, service: "AuthService", listener: AuthListener) -> None:
        self._service = service
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._service._remove_listener(self._listener)
            self.active = False


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService:
    def __init__(self, session_factory: sessionmaker, *, session_ttl: timedelta = timedelta(hours=8)) -> None:
        self._session_factory = session_factory
        self._session_ttl = session_ttl
        self._listeners: list[AuthListener] = []
        self._lock = threading.Lock()

    # ---------- subscriptions ----------
    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        with self._lock:
            self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: AuthListener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _emit(self, event: AuthEvent, session: AuthSession | None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event, session)

    # ---------- helpers ----------
    def _issue(self, s: Session, user: User) -> AuthSession:
        token = secrets.token_urlsafe(32)
        expires_at = datetime.utcnow() + self._session_ttl
        s.add(AuthSessionRow(access_token=token, user_id=user.id, expires_at=expires_at))
        return AuthSession(access_token=token, user=Identity(id=user.id, email=user.email), expires_at=expires_at)

    @staticmethod
    def _to_session(row: AuthSessionRow) -> AuthSession:
        return AuthSession(
            access_token=row.access_token,
            user=Identity(id=row.user.id, email=row.user.email),
            expires_at=row.expires_at,
        )

    # ---------- operations ----------
    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        email = _normalize_email(email)
        with self._session_factory() as s:
            user = s.scalars(select(User).where(User.email == email)).one_or_none()
            if not user or not user.is_active or not check_password_hash(user.password_hash, password or ""):
                logger.info("Sign-in rejected (email=%s)", email)
                raise InvalidCredentialsError("Invalid login credentials")
            session = self._issue(s, user)
            s.commit()
        logger.info("Signed in user_id=%s", session.user.id)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def sign_up(self, email: str, password: str) -> AuthSession:
        email = _normalize_email(email)
        if not email or "@" not in email:
            raise AuthError("A valid email is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        with self._session_factory() as s:
            if s.scalars(select(User).where(User.email == email)).one_or_none():
                raise IdentityExistsError("User already registered")
            user = User(email=email, password_hash=generate_password_hash(password), is_active=True)
            s.add(user)
            try:
                s.flush()
            except IntegrityError as e:
                s.rollback()
                raise IdentityExistsError("User already registered") from e
            session = self._issue(s, user)
            s.commit()
        logger.info("Signed up user_id=%s", session.user.id)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def sign_out(self, access_token: str | None) -> None:
        """
        Invalidate a token. Listeners receive the ended session so they can tell
        whose session went away; unknown tokens are a no-op.
        """
        if not access_token:
            return
        with self._session_factory() as s:
            row = s.scalars(select(AuthSessionRow).where(AuthSessionRow.access_token == access_token)).one_or_none()
            if row is None:
                return
            ended = self._to_session(row)
            s.execute(delete(AuthSessionRow).where(AuthSessionRow.access_token == access_token))
            s.commit()
        logger.info("Signed out user_id=%s", ended.user.id)
        self._emit(AuthEvent.SIGNED_OUT, ended)

    def get_session(self, access_token: str | None) -> AuthSession | None:
        if not access_token:
            return None
        with self._session_factory() as s:
            row = s.scalars(select(AuthSessionRow).where(AuthSessionRow.access_token == access_token)).one_or_none()
            if row is None:
                return None
            session = self._to_session(row)
            if row.expires_at > datetime.utcnow() and row.user.is_active:
                return session
            s.delete(row)
            s.commit()
        logger.info("Session expired for user_id=%s", session.user.id)
        self._emit(AuthEvent.EXPIRED, session)
        return None

    def refresh_session(self, access_token: str) -> AuthSession:
        with self._session_factory() as s:
            row = s.scalars(select(AuthSessionRow).where(AuthSessionRow.access_token == access_token)).one_or_none()
            if row is None or row.expires_at <= datetime.utcnow():
                raise AuthError("Session not found or expired")
            row.expires_at = datetime.utcnow() + self._session_ttl
            session = self._to_session(row)
            s.commit()
        self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    def delete_identity(self, user_id: str) -> None:
        with self._session_factory() as s:
            user = s.get(User, user_id)
            if user is not None:
                s.delete(user)
                s.commit()
                logger.warning("Deleted identity user_id=%s", user_id)
