from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, g, redirect, request, url_for

from app.farmerp.session_store import SessionContext

# Roles are a fixed set stored on the user profile; permissions are derived here.
ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "admin": frozenset(
        {
            "modules.toggle",
            "flocks.edit",
            "flocks.delete",
            "production.record",
            "inventory.edit",
            "inventory.delete",
            "accounts.edit",
        }
    ),
    "manager": frozenset(
        {
            "flocks.edit",
            "flocks.delete",
            "production.record",
            "inventory.edit",
            "inventory.delete",
            "accounts.edit",
        }
    ),
    "operator": frozenset({"flocks.edit", "production.record"}),
}


def user_has_permission(ctx: SessionContext | None, permission_key: str) -> bool:
    if ctx is None or not ctx.is_authenticated:
        return False
    return permission_key in ROLE_PERMISSIONS.get(ctx.role or "", frozenset())


def _login_redirect():
    nxt = request.full_path or request.path
    # Avoid trailing '?' from full_path when there is no query string.
    if nxt.endswith("?"):
        nxt = nxt[:-1]
    return redirect(url_for("auth.login_get", next=nxt))


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        ctx: SessionContext | None = getattr(g, "session_ctx", None)
        if ctx is None or not ctx.is_authenticated:
            return _login_redirect()
        return fn(*args, **kwargs)

    return wrapped


def require_permission(permission_key: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            ctx: SessionContext | None = getattr(g, "session_ctx", None)
            # Unauthenticated → redirect to login.
            if ctx is None or not ctx.is_authenticated:
                return _login_redirect()
            # Authenticated but unauthorized → 403
            if not user_has_permission(ctx, permission_key):
                g.missing_permission = permission_key
                abort(403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
