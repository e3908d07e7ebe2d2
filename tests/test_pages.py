from tests.conftest import login


def _location(resp):
    return resp.headers["Location"]


def test_root_redirects_guest_to_login(client):
    r = client.get("/")
    assert r.status_code == 302
    assert _location(r).endswith("/auth")


def test_protected_page_redirects_guest(client):
    for path in ("/home", "/analytics", "/qr", "/qr/abc", "/profile", "/create-campaign"):
        r = client.get(path)
        assert r.status_code == 302, path
        assert _location(r).endswith("/auth")


def test_login_page_renders_for_guest(client):
    r = client.get("/auth")
    assert r.status_code == 200
    assert b"<form" in r.data


def test_signed_in_user_sees_pages(admin_client):
    r = admin_client.get("/")
    assert _location(r).endswith("/home")

    r = admin_client.get("/auth")
    assert r.status_code == 302
    assert _location(r).endswith("/home")

    for path in ("/home", "/analytics", "/qr", "/profile", "/create-user", "/create-campaign"):
        assert admin_client.get(path).status_code == 200, path

    detail = admin_client.get("/qr/some-campaign-id")
    assert detail.status_code == 200
    assert b"some-campaign-id" in detail.data

    edit = admin_client.get("/edit-campaign/cid-1")
    assert edit.status_code == 200
    assert b"cid-1" in edit.data


def test_unknown_page_is_404_for_everyone(client, make_user):
    r = client.get("/definitely-missing")
    assert r.status_code == 404
    assert b"404" in r.data

    make_user("admin")
    login(client)
    assert client.get("/definitely-missing").status_code == 404


def test_deactivated_session_is_treated_as_guest(app, admin_client, make_user):
    from qradmin.extensions import db
    from qradmin.models import User

    with app.app_context():
        user = User.query.filter_by(username="admin").first()
        user.is_active = False
        db.session.commit()

    r = admin_client.get("/home")
    assert r.status_code == 302
    assert _location(r).endswith("/auth")


def test_health_ready_and_head_probe(client):
    assert client.get("/health").status_code == 204
    r = client.get("/ready")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok"}
    assert client.head("/api-test").status_code == 200


def test_security_headers(client):
    r = client.get("/auth")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"


def test_api_404_is_json(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.get_json() == {"error": "Not found"}


def test_trailing_slash_follows_guard(client, make_user):
    r = client.get("/profile/")
    assert r.status_code == 302
    assert _location(r).endswith("/auth")

    make_user("admin")
    login(client)
    assert client.get("/profile/").status_code == 200
    assert client.get("/qr/abc/").status_code == 200
