import pytest

from app.farmerp.errors import DataServiceError, InvalidCredentialsError
from app.farmerp.session_store import SessionContext, SessionState
from conftest import PASSWORD


@pytest.fixture()
def ctx(auth, data):
    c = SessionContext(auth, data)
    yield c
    c.close()


def test_initialize_without_token_is_anonymous(ctx):
    assert ctx.initialize(None) == SessionState.ANONYMOUS
    assert not ctx.is_authenticated
    assert ctx.profile is None


def test_initialize_hydrates_profile(ctx, auth):
    session = auth.sign_in_with_password("manager@example.com", PASSWORD)
    assert ctx.initialize(session.access_token) == SessionState.AUTHENTICATED
    assert ctx.user.email == "manager@example.com"
    assert ctx.role == "manager"
    assert ctx.profile["full_name"] == "Manager User"


def test_initialize_subscribes_once(ctx, auth):
    ctx.initialize(None)
    ctx.initialize(None)
    assert auth.listener_count == 1
    ctx.close()
    assert auth.listener_count == 0


def test_sign_in_and_out(ctx):
    ctx.initialize(None)
    ctx.sign_in("operator@example.com", PASSWORD)
    assert ctx.is_authenticated
    assert ctx.role == "operator"
    ctx.sign_out()
    assert ctx.state == SessionState.ANONYMOUS
    assert ctx.user is None


def test_failed_sign_in_leaves_context_anonymous(ctx):
    ctx.initialize(None)
    with pytest.raises(InvalidCredentialsError):
        ctx.sign_in("operator@example.com", "wrong")
    assert not ctx.is_authenticated


def test_sign_out_clears_even_when_service_fails(ctx, auth, monkeypatch):
    ctx.initialize(None)
    ctx.sign_in("operator@example.com", PASSWORD)

    def boom(token):
        raise DataServiceError("auth_sessions", "delete", "connection lost")

    monkeypatch.setattr(auth, "sign_out", boom)
    with pytest.raises(DataServiceError):
        ctx.sign_out()
    assert ctx.state == SessionState.ANONYMOUS


def test_external_sign_out_of_same_token_clears(ctx, auth):
    session = auth.sign_in_with_password("admin@example.com", PASSWORD)
    ctx.initialize(session.access_token)
    auth.sign_out(session.access_token)
    assert not ctx.is_authenticated


def test_other_sessions_do_not_leak_between_contexts(ctx, auth, data):
    mine = auth.sign_in_with_password("admin@example.com", PASSWORD)
    ctx.initialize(mine.access_token)

    other = SessionContext(auth, data)
    other.initialize(None)
    try:
        # Another identity signing in never lands in an unrelated context.
        auth.sign_in_with_password("operator@example.com", PASSWORD)
        assert ctx.user.email == "admin@example.com"
        assert not other.is_authenticated

        # A second session of the same identity ending leaves this one alone.
        second = auth.sign_in_with_password("admin@example.com", PASSWORD)
        auth.sign_out(second.access_token)
        assert ctx.is_authenticated
        assert ctx.access_token == mine.access_token
    finally:
        other.close()


def test_sign_up_creates_operator_profile(ctx, data):
    ctx.initialize(None)
    ctx.sign_up("fresh@example.com", "abcdef", " Fresh Hand ")
    assert ctx.is_authenticated
    assert ctx.role == "operator"
    assert data.get("user_profiles", ctx.user.id)["full_name"] == "Fresh Hand"


def test_sign_up_removes_identity_when_profile_fails(ctx, auth, data, monkeypatch):
    ctx.initialize(None)

    def boom(resource, values):
        raise DataServiceError(resource, "insert", "disk full")

    monkeypatch.setattr(data, "insert", boom)
    with pytest.raises(DataServiceError):
        ctx.sign_up("orphan@example.com", "abcdef", "Orphan")
    assert not ctx.is_authenticated
    monkeypatch.undo()

    with pytest.raises(InvalidCredentialsError):
        auth.sign_in_with_password("orphan@example.com", "abcdef")
