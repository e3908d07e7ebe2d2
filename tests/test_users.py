from tests.conftest import login


def test_users_api_is_admin_only(client, user_client):
    assert client.get("/api/users").status_code == 401
    r = user_client.get("/api/users")
    assert r.status_code == 403
    assert r.get_json() == {"error": "Admin access required"}


def test_admin_lists_and_creates_users(admin_client):
    r = admin_client.post(
        "/api/users",
        json={"username": "operator", "password": "operator1", "isAdmin": False},
    )
    assert r.status_code == 201
    created = r.get_json()
    assert created["isActive"] is True
    assert created["isAdmin"] is False

    dup = admin_client.post("/api/users", json={"username": "operator", "password": "operator1"})
    assert dup.status_code == 409

    users = admin_client.get("/api/users").get_json()
    assert [u["username"] for u in users] == ["admin", "operator"]
    assert all("passwordHash" not in u and "password_hash" not in u for u in users)

    one = admin_client.get(f"/api/users/{created['id']}")
    assert one.status_code == 200
    assert one.get_json()["username"] == "operator"


def test_get_unknown_user(admin_client):
    r = admin_client.get("/api/users/does-not-exist")
    assert r.status_code == 404
    assert r.get_json()["error"] == "User not found"


def test_deactivate_other_user(app, admin_client, make_user):
    uid = make_user("operator", is_admin=False)
    r = admin_client.patch(f"/api/users/{uid}/status", json={"isActive": False})
    assert r.status_code == 200
    assert r.get_json()["isActive"] is False
    assert "selfDeactivated" not in r.get_json()

    other = app.test_client()
    assert login(other, "operator").status_code == 401

    back = admin_client.patch(f"/api/users/{uid}/status", json={"isActive": True})
    assert back.get_json()["isActive"] is True


def test_last_active_user_cannot_be_deactivated(app, admin_client):
    from qradmin.services.users_service import get_user_by_username

    with app.app_context():
        admin_id = get_user_by_username("admin").id

    r = admin_client.patch(f"/api/users/{admin_id}/status", json={"isActive": False})
    assert r.status_code == 400
    assert r.get_json()["error"] == "There must be at least one active user in the system."
    assert admin_client.get("/api/auth/me").status_code == 200


def test_self_deactivation_logs_out(app, admin_client, make_user):
    from qradmin.services.users_service import get_user_by_username

    make_user("operator", is_admin=False)
    with app.app_context():
        admin_id = get_user_by_username("admin").id

    r = admin_client.patch(f"/api/users/{admin_id}/status", json={"isActive": False})
    assert r.status_code == 200
    body = r.get_json()
    assert body["selfDeactivated"] is True
    assert body["isActive"] is False
    assert admin_client.get("/api/auth/me").status_code == 401


def test_status_unknown_user(admin_client):
    r = admin_client.patch("/api/users/missing/status", json={"isActive": False})
    assert r.status_code == 404


def test_user_stats(app, admin_client, make_user, make_campaign):
    uid = make_user("operator", is_admin=False)
    make_campaign(uid, name="A")
    make_campaign(uid, name="B", status="expired")

    r = admin_client.get(f"/api/users/{uid}/stats")
    assert r.status_code == 200
    stats = r.get_json()
    assert stats["totalCampaigns"] == 2
    assert stats["activeCampaigns"] == 1
    assert stats["expiredCampaigns"] == 1
    assert stats["totalScans"] == 0
    assert stats["createdAt"]

    assert admin_client.get("/api/users/missing/stats").status_code == 404
