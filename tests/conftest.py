from datetime import timedelta

import pytest

from qradmin import create_app
from qradmin.config import TestingConfig
from qradmin.extensions import db
from qradmin.models import Campaign, utcnow
from qradmin.security.rate_limit import reset_memory_limits
from qradmin.services import users_service

DEFAULT_PASSWORD = "secret123"


@pytest.fixture()
def app(tmp_path):
    # Изолируем БД и каталог загрузок в tmp
    class _Cfg(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.db'}"
        UPLOAD_FOLDER = str(tmp_path / "uploads")
        SECRET_KEY = "test-secret"
        REDIS_URL = ""

    reset_memory_limits()
    a = create_app(_Cfg)
    yield a

    with a.app_context():
        db.session.remove()
        db.engine.dispose()
    reset_memory_limits()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    def _make(username="admin", password=DEFAULT_PASSWORD, is_admin=True, is_active=True):
        with app.app_context():
            user = users_service.create_user(username, password, is_admin=is_admin, is_active=is_active)
            return user.id
    return _make


@pytest.fixture()
def make_campaign(app):
    def _make(owner_id, **overrides):
        now = utcnow()
        fields = dict(
            name="Test campaign",
            category="contest",
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=30),
            status="active",
            scan_count=0,
            created_by=owner_id,
        )
        fields.update(overrides)
        with app.app_context():
            campaign = Campaign(**fields)
            db.session.add(campaign)
            db.session.commit()
            return campaign.id
    return _make


def login(client, username="admin", password=DEFAULT_PASSWORD):
    return client.post("/api/auth/login", json={"username": username, "password": password})


@pytest.fixture()
def admin_client(app, make_user):
    make_user("admin", is_admin=True)
    c = app.test_client()
    assert login(c, "admin").status_code == 200
    return c


@pytest.fixture()
def user_client(app, make_user):
    """Отдельный клиент обычного (не админ) пользователя ``user1``."""
    make_user("user1", is_admin=False)
    c = app.test_client()
    assert login(c, "user1").status_code == 200
    return c
