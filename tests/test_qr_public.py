from qradmin.extensions import db
from qradmin.models import Campaign, ScanEvent


def _scan_count(app, cid):
    with app.app_context():
        return db.session.get(Campaign, cid).scan_count


def _events(app, cid):
    with app.app_context():
        return ScanEvent.query.filter_by(campaign_id=cid).all()


def test_scan_unknown_campaign(client):
    r = client.get("/qrcode/missing")
    assert r.status_code == 404
    assert b"Campaign Not Found" in r.data


def test_scan_records_event(app, client, make_user, make_campaign):
    cid = make_campaign(make_user("admin"), name="Walk-in", description="Free coffee")
    r = client.get("/qrcode/" + cid, headers={"User-Agent": "pytest-agent"})
    assert r.status_code == 200
    assert b"Scan recorded successfully" in r.data
    assert b"Total scans: 1" in r.data

    events = _events(app, cid)
    assert len(events) == 1
    assert events[0].region == "127.0.0.1"
    assert events[0].user_agent == "pytest-agent"
    assert _scan_count(app, cid) == 1


def test_scan_uses_forwarded_ip(app, client, make_user, make_campaign):
    cid = make_campaign(make_user("admin"))
    client.get("/qrcode/" + cid, headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
    assert [e.region for e in _events(app, cid)] == ["203.0.113.5"]


def test_scan_redirects_to_target(app, client, make_user, make_campaign):
    cid = make_campaign(make_user("admin"), target_url="https://example.com/landing")
    r = client.get("/qrcode/" + cid)
    assert r.status_code == 302
    assert r.headers["Location"] == "https://example.com/landing"
    assert _scan_count(app, cid) == 1


def test_expired_campaign_is_not_counted(app, client, make_user, make_campaign):
    cid = make_campaign(make_user("admin"), status="expired", scan_count=7)
    r = client.get("/qrcode/" + cid)
    assert r.status_code == 200
    assert b"Campaign Expired" in r.data
    assert _scan_count(app, cid) == 7
    assert _events(app, cid) == []


def test_limit_reached_is_not_counted(app, client, make_user, make_campaign):
    cid = make_campaign(make_user("admin"), scan_count=3, scan_limit=3)
    r = client.get("/qrcode/" + cid)
    assert b"Scan Limit Reached" in r.data
    assert _scan_count(app, cid) == 3
    assert _events(app, cid) == []


def test_scans_listing_newest_first(app, admin_client, make_campaign):
    from qradmin.services.users_service import get_user_by_username

    with app.app_context():
        owner = get_user_by_username("admin").id
    cid = make_campaign(owner)
    admin_client.get("/qrcode/" + cid, headers={"X-Forwarded-For": "198.51.100.1"})
    admin_client.get("/qrcode/" + cid, headers={"X-Forwarded-For": "198.51.100.2"})

    r = admin_client.get(f"/api/campaigns/{cid}/scans")
    assert r.status_code == 200
    regions = [e["region"] for e in r.get_json()]
    assert regions == ["198.51.100.2", "198.51.100.1"]

    assert admin_client.get("/api/campaigns/missing/scans").status_code == 404


def test_qr_view_page(client, make_user, make_campaign):
    cid = make_campaign(make_user("admin"), name="Shareable")
    r = client.get("/qr-view/" + cid)
    assert r.status_code == 200
    assert b"data:image/png;base64," in r.data
    assert f"/qrcode/{cid}".encode() in r.data

    assert client.get("/qr-view/missing").status_code == 404


def test_public_base_url_is_used(app, client, make_user, make_campaign):
    app.config["PUBLIC_BASE_URL"] = "https://qr.example.org"
    cid = make_campaign(make_user("admin"))
    r = client.get("/qr-view/" + cid)
    assert f"https://qr.example.org/qrcode/{cid}".encode() in r.data
