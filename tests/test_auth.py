from tests.conftest import DEFAULT_PASSWORD, login


def test_register_logs_in(client):
    r = client.post("/api/auth/register", json={"username": "alice", "password": "wonderland"})
    assert r.status_code == 201
    body = r.get_json()
    assert body["user"]["username"] == "alice"
    assert body["user"]["isAdmin"] is False
    assert "passwordHash" not in body["user"]

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.get_json()["user"]["username"] == "alice"


def test_register_duplicate_username(client, make_user):
    make_user("alice", is_admin=False)
    r = client.post("/api/auth/register", json={"username": "alice", "password": "another1"})
    assert r.status_code == 409
    assert r.get_json()["error"] == "Username already exists"


def test_register_validation(client):
    r = client.post("/api/auth/register", json={"username": "al", "password": "123"})
    assert r.status_code == 400
    body = r.get_json()
    assert body["error"] == "Validation failed"
    paths = {tuple(d["path"]) for d in body["details"]}
    assert ("username",) in paths
    assert ("password",) in paths

    extra = client.post("/api/auth/register", json={"username": "alice", "password": "secret1", "role": "admin"})
    assert extra.status_code == 400


def test_login_success_and_failure(client, make_user):
    make_user("admin")
    bad = login(client, "admin", "wrong-password")
    assert bad.status_code == 401
    assert bad.get_json()["error"] == "Invalid username or password"

    ok = login(client, "admin")
    assert ok.status_code == 200
    assert ok.get_json()["user"]["isAdmin"] is True


def test_inactive_user_cannot_login(client, make_user):
    make_user("ghost", is_active=False)
    r = login(client, "ghost")
    assert r.status_code == 401


def test_me_requires_auth(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.get_json() == {"error": "Authentication required"}


def test_logout(admin_client):
    r = admin_client.post("/api/auth/logout")
    assert r.status_code == 200
    assert admin_client.get("/api/auth/me").status_code == 401


def test_change_password(admin_client):
    wrong = admin_client.patch(
        "/api/auth/change-password",
        json={"currentPassword": "nope-nope", "newPassword": "brand-new-1"},
    )
    assert wrong.status_code == 400
    assert wrong.get_json()["error"] == "Current password is incorrect"

    same = admin_client.patch(
        "/api/auth/change-password",
        json={"currentPassword": DEFAULT_PASSWORD, "newPassword": DEFAULT_PASSWORD},
    )
    assert same.status_code == 400
    assert same.get_json()["error"] == "Validation failed"

    ok = admin_client.patch(
        "/api/auth/change-password",
        json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "brand-new-1"},
    )
    assert ok.status_code == 200

    admin_client.post("/api/auth/logout")
    assert login(admin_client, "admin", DEFAULT_PASSWORD).status_code == 401
    assert login(admin_client, "admin", "brand-new-1").status_code == 200


def test_change_password_requires_auth(client):
    r = client.patch("/api/auth/change-password", json={"currentPassword": "a", "newPassword": "bbbbbb"})
    assert r.status_code == 401


def test_login_rate_limited(app, client, make_user):
    make_user("admin")
    app.config["RATE_LIMIT_LOGIN_PER_MINUTE"] = 2
    assert login(client, "admin", "bad").status_code == 401
    assert login(client, "admin", "bad").status_code == 401
    r = login(client, "admin")
    assert r.status_code == 429
    assert r.get_json()["error"] == "Too many login attempts"
