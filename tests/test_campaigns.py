import io
import os
from datetime import timedelta

from PIL import Image

from qradmin.extensions import db
from qradmin.models import Campaign, utcnow
from qradmin.services import campaigns_service
from tests.conftest import login


def _payload(**overrides):
    data = {
        "name": "Spring sale",
        "category": "contest",
        "description": "Scan to win",
        "startDate": "2030-01-01T00:00:00Z",
        "endDate": "2030-02-01T00:00:00Z",
    }
    data.update(overrides)
    return data


def _admin_id(app):
    from qradmin.services.users_service import get_user_by_username

    with app.app_context():
        return get_user_by_username("admin").id


def _png_bytes(size=(16, 16)):
    buf = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


def test_create_campaign(admin_client):
    r = admin_client.post("/api/campaigns", json=_payload(scanLimit=50, borderStyle="thick"))
    assert r.status_code == 201
    c = r.get_json()
    assert c["status"] == "active"
    assert c["scanCount"] == 0
    assert c["scanLimit"] == 50
    assert c["borderStyle"] == "thick"
    assert c["createdByUsername"] == "admin"
    assert c["startDate"] == "2030-01-01T00:00:00"


def test_create_campaign_validation(admin_client, client):
    assert client.post("/api/campaigns", json=_payload()).status_code == 401

    r = admin_client.post("/api/campaigns", json=_payload(endDate="2029-12-31T00:00:00Z"))
    assert r.status_code == 400
    assert r.get_json()["error"] == "Validation failed"

    assert admin_client.post("/api/campaigns", json=_payload(scanLimit=0)).status_code == 400
    assert admin_client.post("/api/campaigns", json=_payload(borderStyle="dotted")).status_code == 400
    assert admin_client.post("/api/campaigns", json={"name": "x"}).status_code == 400


def test_live_campaigns_pagination_and_sorting(app, admin_client, make_campaign):
    owner = _admin_id(app)
    make_campaign(owner, name="Bravo", scan_count=5)
    make_campaign(owner, name="Alpha", scan_count=9, category="NGO")
    make_campaign(owner, name="Charlie", scan_count=1)

    r = admin_client.get("/api/campaigns/live?limit=2&sortBy=name&sortOrder=asc")
    assert r.status_code == 200
    body = r.get_json()
    assert [c["name"] for c in body["campaigns"]] == ["Alpha", "Bravo"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

    page2 = admin_client.get("/api/campaigns/live?limit=2&page=2&sortBy=name&sortOrder=asc").get_json()
    assert [c["name"] for c in page2["campaigns"]] == ["Charlie"]

    by_scans = admin_client.get("/api/campaigns/live?sortBy=scanCount").get_json()
    assert [c["scanCount"] for c in by_scans["campaigns"]] == [9, 5, 1]

    ngo = admin_client.get("/api/campaigns/live?filterCategory=NGO").get_json()
    assert [c["name"] for c in ngo["campaigns"]] == ["Alpha"]

    mine = admin_client.get(f"/api/campaigns/live?filterUser={owner}").get_json()
    assert mine["pagination"]["total"] == 3


def test_live_campaigns_invalid_params(admin_client):
    for qs in ("limit=101", "page=-1", "limit=-5"):
        r = admin_client.get(f"/api/campaigns/live?{qs}")
        assert r.status_code == 400, qs
        assert r.get_json()["error"] == "Invalid pagination parameters"

    r = admin_client.get("/api/campaigns/live?sortBy=password")
    assert r.status_code == 400
    assert r.get_json()["error"] == "Invalid sort field"

    # нечисловые значения дают значения по умолчанию
    ok = admin_client.get("/api/campaigns/live?page=abc&limit=")
    assert ok.get_json()["pagination"]["limit"] == 12


def test_categories_and_users(app, admin_client, make_user, make_campaign):
    owner = _admin_id(app)
    other = make_user("operator", is_admin=False)
    make_campaign(owner, category="payment")
    make_campaign(other, category="NGO")
    make_campaign(other, category="payment")

    assert admin_client.get("/api/campaigns/categories").get_json() == ["NGO", "payment"]
    users = admin_client.get("/api/campaigns/users").get_json()
    assert [u["username"] for u in users] == ["admin", "operator"]


def test_get_campaign(app, admin_client, make_campaign):
    cid = make_campaign(_admin_id(app), name="Lookup")
    assert admin_client.get(f"/api/campaigns/{cid}").get_json()["name"] == "Lookup"

    missing = admin_client.get("/api/campaigns/missing")
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Campaign not found"


def test_update_campaign_rules(app, admin_client, user_client, make_campaign):
    owner = _admin_id(app)
    started = make_campaign(owner, name="Started")
    expired = make_campaign(owner, name="Old", status="expired")

    denied = user_client.put(f"/api/campaigns/{started}", json={"name": "Hijack"})
    assert denied.status_code == 403

    renamed = admin_client.put(f"/api/campaigns/{started}", json={"name": "Renamed", "scanLimit": 10})
    assert renamed.status_code == 200
    assert renamed.get_json()["name"] == "Renamed"
    assert renamed.get_json()["scanLimit"] == 10

    locked = admin_client.put(f"/api/campaigns/{started}", json={"startDate": "2031-01-01T00:00:00Z"})
    assert locked.status_code == 400
    assert "already started" in locked.get_json()["error"]

    inactive = admin_client.put(f"/api/campaigns/{expired}", json={"name": "Revive"})
    assert inactive.status_code == 400
    assert inactive.get_json()["error"] == "Only active campaigns can be edited"

    assert admin_client.put("/api/campaigns/missing", json={"name": "x"}).status_code == 404


def test_update_future_campaign_dates(app, admin_client, make_campaign):
    now = utcnow()
    cid = make_campaign(_admin_id(app), start_date=now + timedelta(days=5), end_date=now + timedelta(days=10))

    moved = admin_client.put(f"/api/campaigns/{cid}", json={"startDate": (now + timedelta(days=6)).isoformat()})
    assert moved.status_code == 200

    bad = admin_client.put(f"/api/campaigns/{cid}", json={"endDate": (now + timedelta(days=1)).isoformat()})
    assert bad.status_code == 400
    assert bad.get_json()["error"] == "End date must not be before start date"


def test_owner_can_edit_own_campaign(app, user_client):
    r = user_client.post("/api/campaigns", json=_payload())
    cid = r.get_json()["id"]
    upd = user_client.put(f"/api/campaigns/{cid}", json={"description": "updated"})
    assert upd.status_code == 200
    assert upd.get_json()["description"] == "updated"


def test_scan_increment_and_limit(app, admin_client, make_campaign):
    owner = _admin_id(app)
    cid = make_campaign(owner, scan_limit=1)
    expired = make_campaign(owner, status="expired")

    r = admin_client.patch(f"/api/campaigns/{cid}/scan")
    assert r.status_code == 200
    assert admin_client.get(f"/api/campaigns/{cid}").get_json()["scanCount"] == 1

    full = admin_client.patch(f"/api/campaigns/{cid}/scan")
    assert full.status_code == 400
    assert full.get_json()["error"] == "Scan limit reached"

    inactive = admin_client.patch(f"/api/campaigns/{expired}/scan")
    assert inactive.get_json()["error"] == "Campaign is not active"

    missing = admin_client.patch("/api/campaigns/missing/scan")
    assert missing.get_json()["error"] == "Campaign not found"


def test_expire_finished_campaigns(app, make_user, make_campaign):
    owner = make_user("admin")
    now = utcnow()
    old = make_campaign(owner, end_date=now - timedelta(minutes=1))
    fresh = make_campaign(owner)

    with app.app_context():
        assert campaigns_service.expire_finished_campaigns(now=now) == 1
        assert db.session.get(Campaign, old).status == "expired"
        assert db.session.get(Campaign, fresh).status == "active"
        assert campaigns_service.expire_finished_campaigns(now=now) == 0


def test_qr_png(app, admin_client, make_campaign):
    cid = make_campaign(_admin_id(app), border_style="thick")
    r = admin_client.get(f"/api/campaigns/{cid}/qr.png")
    assert r.status_code == 200
    assert r.headers["Content-Type"] == "image/png"
    assert r.data.startswith(b"\x89PNG")

    assert admin_client.get("/api/campaigns/missing/qr.png").status_code == 404


def test_upload_icon_and_render_with_it(app, admin_client, make_campaign):
    r = admin_client.post(
        "/api/upload/icon",
        data={"icon": (io.BytesIO(_png_bytes()), "logo.png", "image/png")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 200
    icon_path = r.get_json()["iconPath"]
    assert icon_path.startswith("/uploads/icon-")
    assert icon_path.endswith(".png")
    assert os.path.isfile(os.path.join(app.config["UPLOAD_FOLDER"], icon_path.rsplit("/", 1)[1]))

    served = admin_client.get(icon_path)
    assert served.status_code == 200

    cid = make_campaign(_admin_id(app), icon_path=icon_path)
    png = admin_client.get(f"/api/campaigns/{cid}/qr.png")
    assert png.status_code == 200
    assert png.data.startswith(b"\x89PNG")


def test_upload_icon_rejects_bad_files(app, admin_client):
    none = admin_client.post("/api/upload/icon", data={}, content_type="multipart/form-data")
    assert none.status_code == 400
    assert none.get_json()["error"] == "No file uploaded"

    text = admin_client.post(
        "/api/upload/icon",
        data={"icon": (io.BytesIO(b"hello"), "notes.txt", "text/plain")},
        content_type="multipart/form-data",
    )
    assert text.status_code == 400
    assert text.get_json()["error"] == "Only image files are allowed for QR code icons"

    app.config["MAX_ICON_BYTES"] = 10
    big = admin_client.post(
        "/api/upload/icon",
        data={"icon": (io.BytesIO(_png_bytes()), "logo.png", "image/png")},
        content_type="multipart/form-data",
    )
    assert big.status_code == 413


def test_upload_icon_requires_auth(client):
    r = client.post(
        "/api/upload/icon",
        data={"icon": (io.BytesIO(_png_bytes()), "logo.png", "image/png")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 401


def test_login_helper_roundtrip(client, make_user):
    make_user("someone", is_admin=False)
    assert login(client, "someone").status_code == 200
    assert client.get("/api/campaigns/live").status_code == 200


def test_update_rejects_null_for_required_fields(app, admin_client, make_campaign):
    cid = make_campaign(_admin_id(app), name="Keep me")
    for field in ("name", "category", "startDate", "endDate", "borderStyle"):
        r = admin_client.put(f"/api/campaigns/{cid}", json={field: None})
        assert r.status_code == 400, field
        assert r.get_json()["error"] == "Validation failed"

    # nullable поля по-прежнему можно очистить
    cleared = admin_client.put(f"/api/campaigns/{cid}", json={"description": None, "scanLimit": None})
    assert cleared.status_code == 200
    assert cleared.get_json()["name"] == "Keep me"


def test_scan_limit_checked_against_stored_count(app, make_user, make_campaign):
    from sqlalchemy import text

    cid = make_campaign(make_user("admin"), scan_limit=1)
    with app.app_context():
        stale = campaigns_service.get_campaign(cid)
        assert stale.scan_count == 0

        # параллельный запрос уже занял последний скан
        with db.engine.begin() as conn:
            conn.execute(text("UPDATE campaigns SET scan_count = 1 WHERE id = :id"), {"id": cid})

        ok, reason = campaigns_service.increment_scan_count(cid)
        assert ok is False
        assert reason == "Scan limit reached"

    with app.app_context():
        assert db.session.get(Campaign, cid).scan_count == 1
