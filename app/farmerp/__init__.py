import logging
from datetime import timedelta

from flask import Flask, g, render_template, request, session
from dotenv import load_dotenv

from app.farmerp.auth import bp as auth_bp, close_session_context, load_session_context
from app.farmerp.auth_service import AuthService
from app.farmerp.config import load_config
from app.farmerp.data_service import DataService
from app.farmerp.db import init_db
from app.farmerp.logging_config import configure_logging
from app.farmerp.modules.accounting.admin import bp as accounting_bp
from app.farmerp.modules.dashboard.admin import bp as dashboard_bp
from app.farmerp.modules.inventory.admin import bp as inventory_bp
from app.farmerp.modules.production.admin import bp as production_bp
from app.farmerp.modules.settings.admin import bp as settings_bp
from app.farmerp.query_cache import CacheVersions, QueryCache
from app.farmerp.routes import bp as routes_bp
from app.farmerp.security import LoginRateLimiter


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=app.config["SESSION_TTL_HOURS"])
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    configure_logging(app.config["LOG_LEVEL"])

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)
    sm = app.extensions["sqlalchemy_sessionmaker"]
    app.extensions["data_service"] = DataService(sm)
    app.extensions["auth_service"] = AuthService(sm, session_ttl=timedelta(hours=app.config["SESSION_TTL_HOURS"]))
    app.extensions["query_cache"] = QueryCache(stale_after=app.config["QUERY_STALE_SECONDS"], versions=CacheVersions(sm))
    app.extensions["login_limiter"] = LoginRateLimiter()

    def _dispose_engine_on_fork() -> None:
        import os

        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    # CSRF protection (minimal)
    from app.farmerp.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_permissions() -> dict:
        from app.farmerp.rbac import user_has_permission

        def has_perm(key: str) -> bool:
            return user_has_permission(getattr(g, "session_ctx", None), key)

        return {"has_perm": has_perm}

    @app.context_processor
    def _inject_sidebar() -> dict:
        from app.farmerp.shell import sidebar_context

        return sidebar_context()

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d") -> str:
        if value is None:
            return "-"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Sign-in and sign-up run before a form page has necessarily been served.
            if (request.endpoint or "").startswith("auth."):
                return None
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(dashboard_bp, url_prefix="/app")
    app.register_blueprint(production_bp, url_prefix="/app")
    app.register_blueprint(inventory_bp, url_prefix="/app")
    app.register_blueprint(accounting_bp, url_prefix="/app")
    app.register_blueprint(settings_bp, url_prefix="/app")

    app.before_request(load_session_context)
    app.teardown_request(close_session_context)

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        missing = getattr(g, "missing_permission", None)
        if missing:
            app.logger.warning("Forbidden: missing_permission=%s request_id=%s", missing, getattr(g, "request_id", None))
        return render_template("errors/403.html", missing_permission=missing), 403

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
