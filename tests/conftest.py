import pytest
from werkzeug.security import generate_password_hash

from app.farmerp import create_app
from app.farmerp.db import session_scope
from app.farmerp.models import Base, SystemModule, User, UserProfile

PASSWORD = "secret-pw"

# key, name, icon, sort_order, enabled, requires
MODULES = [
    ("dashboard", "Dashboard", "LayoutDashboard", 10, True, []),
    ("production", "Production", "Egg", 20, True, []),
    ("inventory", "Inventory", "Package", 30, True, []),
    ("accounting", "Accounting", "Calculator", 40, True, []),
    ("sales", "Sales", "ShoppingCart", 50, True, ["inventory", "purchasing"]),
    ("purchasing", "Purchasing", "Truck", 60, False, []),
    ("settings", "Settings", "Settings", 90, True, []),
]


def seed(app) -> None:
    with session_scope(app) as s:
        for key, name, icon, sort_order, enabled, requires in MODULES:
            s.add(
                SystemModule(
                    module_key=key,
                    module_name=name,
                    icon=icon,
                    sort_order=sort_order,
                    is_enabled=enabled,
                    requires_modules=requires,
                    config={},
                )
            )
        for role in ("admin", "manager", "operator"):
            u = User(email=f"{role}@example.com", password_hash=generate_password_hash(PASSWORD), is_active=True)
            s.add(u)
            s.flush()
            s.add(UserProfile(id=u.id, full_name=f"{role.title()} User", role=role))


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.delenv("SESSION_TTL_HOURS", raising=False)
    monkeypatch.delenv("QUERY_STALE_SECONDS", raising=False)

    app = create_app()
    app.config["TESTING"] = True
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    seed(app)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def data(app):
    return app.extensions["data_service"]


@pytest.fixture()
def auth(app):
    return app.extensions["auth_service"]


@pytest.fixture()
def cache(app):
    return app.extensions["query_cache"]


@pytest.fixture()
def login(client):
    def _login(role: str = "admin"):
        return client.post(
            "/auth/login",
            data={"email": f"{role}@example.com", "password": PASSWORD},
            follow_redirects=False,
        )

    return _login


@pytest.fixture()
def post(client):
    """POST a form with the session's CSRF token attached."""

    def _post(url: str, data: dict | None = None, **kwargs):
        with client.session_transaction() as sess:
            token = sess.setdefault("csrf_token", "test-csrf-token")
        payload = dict(data or {})
        payload["csrf_token"] = token
        return client.post(url, data=payload, **kwargs)

    return _post
