from __future__ import annotations

import uuid

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, session, url_for

from app.farmerp.db import auth_service, data_service
from app.farmerp.errors import AuthError, FarmErpError, InvalidCredentialsError
from app.farmerp.security import LoginRateLimiter
from app.farmerp.session_store import SessionContext

bp = Blueprint("auth", __name__)

SESSION_TOKEN_KEY = "access_token"


def _limiter() -> LoginRateLimiter:
    return current_app.extensions["login_limiter"]


def _safe_next(nxt: str) -> str | None:
    # Only allow local paths to avoid open redirects.
    if nxt.startswith("/") and not nxt.startswith("//"):
        return nxt
    return None


def load_session_context() -> None:
    """
    Builds g.session_ctx from the token in the signed session cookie.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.session_ctx = None
        return

    ctx = SessionContext(auth_service(), data_service())
    g.session_ctx = ctx
    try:
        ctx.initialize(session.get(SESSION_TOKEN_KEY))
    except FarmErpError as e:
        current_app.logger.error("Session hydration failed (clearing session): %s", e)
        ctx.sign_out()
    if not ctx.is_authenticated:
        session.pop(SESSION_TOKEN_KEY, None)


def close_session_context(_exc: BaseException | None) -> None:
    ctx: SessionContext | None = getattr(g, "session_ctx", None)
    if ctx is not None:
        ctx.close()


@bp.get("/login")
def login_get():
    nxt = (request.args.get("next") or "").strip()
    return render_template("auth/login.html", next=nxt)


@bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    nxt = (request.form.get("next") or "").strip()
    ip = request.remote_addr or "unknown"

    limiter = _limiter()
    if limiter.is_limited(ip):
        flash("Too many login attempts. Please wait 5 minutes.", "danger")
        return redirect(url_for("auth.login_get"))
    limiter.record(ip)

    ctx: SessionContext = g.session_ctx
    try:
        auth_session = ctx.sign_in(email, password)
    except InvalidCredentialsError:
        flash("Invalid credentials.", "danger")
        return redirect(url_for("auth.login_get", next=nxt or None))
    except Exception:
        current_app.logger.exception("Login POST crashed (email=%s request_id=%s)", email, getattr(g, "request_id", None))
        raise

    session[SESSION_TOKEN_KEY] = auth_session.access_token
    limiter.reset(ip)
    return redirect(_safe_next(nxt) or url_for("routes.index"))


@bp.get("/signup")
def signup_get():
    return render_template("auth/signup.html")


@bp.post("/signup")
def signup_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    full_name = (request.form.get("full_name") or "").strip()

    if not full_name:
        flash("Full name is required.", "danger")
        return redirect(url_for("auth.signup_get"))

    ctx: SessionContext = g.session_ctx
    try:
        auth_session = ctx.sign_up(email, password, full_name)
    except AuthError as e:
        flash(str(e), "danger")
        return redirect(url_for("auth.signup_get"))
    except FarmErpError as e:
        current_app.logger.error("Sign-up failed (email=%s): %s", email, e)
        flash("Could not create the account.", "danger")
        return redirect(url_for("auth.signup_get"))

    session[SESSION_TOKEN_KEY] = auth_session.access_token
    flash("Account created.", "success")
    return redirect(url_for("routes.index"))


@bp.get("/logout")
def logout():
    ctx: SessionContext | None = getattr(g, "session_ctx", None)
    if ctx is not None:
        ctx.sign_out()
    session.pop(SESSION_TOKEN_KEY, None)
    return redirect(url_for("auth.login_get"))
