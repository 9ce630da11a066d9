def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_root_redirects_anonymous_to_login(client):
    r = client.get("/")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]


def test_views_require_login(client):
    r = client.get("/app/production/flocks")
    assert r.status_code == 302
    assert "/auth/login" in r.headers["Location"]
    assert "next=" in r.headers["Location"]


def test_login_and_dashboard_access(client, login):
    r = login("admin")
    assert r.status_code == 302

    r = client.get("/", follow_redirects=True)
    assert r.status_code == 200
    assert b"Dashboard" in r.data
    assert b"Admin User" in r.data


def test_bad_password_flashes(client):
    r = client.post("/auth/login", data={"email": "admin@example.com", "password": "nope"}, follow_redirects=True)
    assert r.status_code == 200
    assert b"Invalid credentials." in r.data


def test_login_is_rate_limited(client):
    for _ in range(5):
        client.post("/auth/login", data={"email": "admin@example.com", "password": "nope"})
    r = client.post("/auth/login", data={"email": "admin@example.com", "password": "nope"}, follow_redirects=True)
    assert b"Too many login attempts" in r.data


def test_logout_clears_session(client, login):
    login("operator")
    assert client.get("/app/dashboard").status_code == 200
    client.get("/auth/logout")
    r = client.get("/app/dashboard")
    assert r.status_code == 302


def test_post_without_csrf_token_is_rejected(client, login):
    login("admin")
    r = client.post("/app/production/flocks/new", data={"flock_number": "L-1"})
    assert r.status_code == 400


def test_request_subscriptions_are_released(client, login, auth):
    login("admin")
    client.get("/app/dashboard")
    assert auth.listener_count == 0


def test_signup_creates_operator_profile(client, data):
    r = client.post(
        "/auth/signup",
        data={"email": "New@Example.com", "password": "abcdef", "full_name": "New Hand"},
    )
    assert r.status_code == 302

    profiles = data.select("user_profiles", eq={"full_name": "New Hand"}).rows
    assert len(profiles) == 1
    assert profiles[0]["role"] == "operator"

    r = client.get("/app/dashboard")
    assert r.status_code == 200


def test_signup_duplicate_email(client):
    r = client.post(
        "/auth/signup",
        data={"email": "admin@example.com", "password": "abcdef", "full_name": "Someone"},
        follow_redirects=True,
    )
    assert b"User already registered" in r.data
