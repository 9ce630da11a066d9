from flask import Blueprint, abort, g, redirect, render_template, url_for

from app.farmerp.rbac import require_login
from app.farmerp.shell import DEFAULT_MODULE, current_modules, resolve_view

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    ctx = getattr(g, "session_ctx", None)
    if ctx is not None and ctx.is_authenticated:
        return redirect(url_for("routes.module_view", module_key=DEFAULT_MODULE))
    return redirect(url_for("auth.login_get"))


@bp.get("/app/<module_key>")
@require_login
def module_view(module_key: str):
    view = resolve_view(module_key, current_modules())
    if view is None:
        abort(404)
    if view.is_placeholder:
        return render_template("shell/placeholder.html", module=view.module)
    return redirect(url_for(view.endpoint))


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """Fast health check for probes. No DB access."""
    return "ok", 200
