from qradmin.security import rate_limit
from qradmin.security.rate_limit import check_rate_limit


def test_memory_window(app):
    with app.app_context():
        first = check_rate_limit("unit", "1.2.3.4", limit=2, window_seconds=60)
        second = check_rate_limit("unit", "1.2.3.4", limit=2, window_seconds=60)
        third = check_rate_limit("unit", "1.2.3.4", limit=2, window_seconds=60)
        other = check_rate_limit("unit", "5.6.7.8", limit=2, window_seconds=60)

    assert first[0] and second[0]
    assert third[0] is False
    assert third[1].remaining == 0
    assert other[0] is True
    assert set(third[1].to_dict()) == {"limit", "remaining", "resetIn"}


def test_api_limit_returns_429(app, client):
    app.config["RATE_LIMIT_API_REQUESTS"] = 2
    assert client.get("/api/auth/me").status_code == 401
    r = client.get("/api/auth/me")
    assert r.headers["X-RateLimit-Remaining"] == "0"

    blocked = client.get("/api/auth/me")
    assert blocked.status_code == 429
    assert blocked.get_json()["error"] == "Too many requests, please try again later."
    assert blocked.headers["X-RateLimit-Limit"] == "2"


def test_pages_and_head_are_not_limited(app, client):
    app.config["RATE_LIMIT_API_REQUESTS"] = 1
    for _ in range(3):
        assert client.get("/auth").status_code == 200
        assert client.head("/api-test").status_code == 200


def test_memory_counter_resets_per_window(app):
    with app.app_context():
        for window in range(50):
            ok, info = check_rate_limit("unit", "9.9.9.9", limit=1, window_seconds=60, now=1_000_000 + window * 60)
            assert ok is True
            assert info.reset_in == 60
    assert len(rate_limit._counters) == 1


def test_expired_counters_are_pruned(app, monkeypatch):
    monkeypatch.setattr(rate_limit, "_PRUNE_AT", 10)
    with app.app_context():
        for i in range(10):
            check_rate_limit("unit", f"10.0.0.{i}", limit=5, window_seconds=60, now=1_000_000)
        assert len(rate_limit._counters) == 10

        check_rate_limit("unit", "10.0.1.1", limit=5, window_seconds=60, now=1_000_000 + 61)
    assert list(rate_limit._counters) == ["unit:10.0.1.1"]
