import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qradmin.extensions import db
from qradmin.models import Campaign, User
from qradmin.seed import SAMPLE_CAMPAIGNS, seed_campaigns, seed_database, seed_users


def test_seed_campaigns_without_users(app, caplog):
    caplog.set_level(logging.INFO, logger="qradmin.seed")
    with app.app_context():
        result = seed_campaigns()
        assert result.status == "no_users"
        assert Campaign.query.count() == 0
    assert "No users found. Please create a user first." in caplog.text


def test_seed_campaigns_uses_first_user(app, make_user):
    first = make_user("first", is_admin=False)
    make_user("second", is_admin=False)

    with app.app_context():
        result = seed_campaigns()
        assert result.status == "seeded"
        assert result.inserted == 6
        rows = Campaign.query.all()
        assert len(rows) == len(SAMPLE_CAMPAIGNS) == 6
        assert {c.created_by for c in rows} == {first}
        assert all(c.status == "active" and c.image_url is None for c in rows)
        by_name = {c.name: c for c in rows}
        assert by_name["Payment Gateway Integration"].scan_count == 2103
        assert by_name["Charity Fundraiser"].category == "NGO"


def test_seed_campaigns_is_idempotent(app, make_user, caplog):
    make_user("admin")
    caplog.set_level(logging.INFO, logger="qradmin.seed")
    with app.app_context():
        assert seed_campaigns().status == "seeded"
        again = seed_campaigns()
        assert again.status == "already_seeded"
        assert again.inserted == 0
        assert Campaign.query.count() == 6
    assert "Campaigns already seeded" in caplog.text


def test_seed_campaigns_failure_is_logged(app, make_user, monkeypatch, caplog):
    make_user("admin")

    def boom(self):
        raise SQLAlchemyError("disk full")

    with app.app_context():
        monkeypatch.setattr(Session, "commit", boom)
        result = seed_campaigns()
        monkeypatch.undo()
        assert result.status == "failed"
        assert result.ok is False
        assert Campaign.query.count() == 0
    assert "Error seeding campaigns" in caplog.text


def test_seed_users_and_database(app):
    with app.app_context():
        assert seed_users() == 3
        admin = User.query.filter_by(username="admin").first()
        assert admin.is_admin is True
        assert admin.check_password(app.config["SEED_ADMIN_PASSWORD"])
        assert User.query.filter_by(username="demo").first().is_admin is False

        assert seed_users() == 0
        result = seed_database()
        assert result.status == "seeded"
        assert {c.created_by for c in Campaign.query.all()} == {
            User.query.order_by(User.created_at.asc(), User.username.asc()).first().id
        }
