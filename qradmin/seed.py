"""
Заполнение базы демо-данными.

``seed_users`` создаёт три учётные записи (admin / user1 / demo),
``seed_campaigns`` — шесть примерных кампаний от имени первого
пользователя. Обе функции ничего не делают, если данные уже есть,
поэтому их безопасно вызывать при каждом старте (SEED_ON_STARTUP)
или из CLI (``flask seed``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import Campaign, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedResult:
    status: str  # "seeded" | "already_seeded" | "no_users" | "failed"
    inserted: int = 0

    @property
    def ok(self) -> bool:
        return self.status != "failed"


SAMPLE_CAMPAIGNS: List[Dict[str, Any]] = [
    {"name": "Summer Product Launch", "category": "contest",
     "start_date": datetime(2024, 6, 1), "end_date": datetime(2024, 8, 31), "scan_count": 1247},
    {"name": "Charity Fundraiser", "category": "NGO",
     "start_date": datetime(2024, 5, 15), "end_date": datetime(2024, 12, 31), "scan_count": 856},
    {"name": "Payment Gateway Integration", "category": "payment",
     "start_date": datetime(2024, 7, 1), "end_date": datetime(2024, 9, 30), "scan_count": 2103},
    {"name": "Winter Holiday Contest", "category": "contest",
     "start_date": datetime(2024, 12, 1), "end_date": datetime(2025, 1, 15), "scan_count": 423},
    {"name": "Mobile App Downloads", "category": "contest",
     "start_date": datetime(2024, 4, 1), "end_date": datetime(2024, 10, 31), "scan_count": 1689},
    {"name": "Customer Survey Campaign", "category": "contest",
     "start_date": datetime(2024, 3, 15), "end_date": datetime(2024, 6, 15), "scan_count": 312},
]


def _seed_user_specs() -> List[Dict[str, Any]]:
    cfg = current_app.config
    return [
        {"username": "admin", "password": cfg.get("SEED_ADMIN_PASSWORD", "admin123"), "is_admin": True},
        {"username": "user1", "password": cfg.get("SEED_USER1_PASSWORD", "password1"), "is_admin": False},
        {"username": "demo", "password": cfg.get("SEED_DEMO_PASSWORD", "demo123"), "is_admin": False},
    ]


def seed_users() -> int:
    """Создать демо-пользователей, если таблица users пуста.

    Возвращает количество созданных записей.
    """
    existing = User.query.count()
    if existing:
        logger.info("Database already has %s users, skipping seed", existing)
        return 0

    created = 0
    for spec in _seed_user_specs():
        user = User(username=spec["username"], is_admin=spec["is_admin"], is_active=True)
        user.set_password(spec["password"])
        db.session.add(user)
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to create seed user %s", spec["username"])
            continue
        created += 1
        logger.info("Created seed user: %s", user.username)
    return created


def _first_user() -> Optional[User]:
    return User.query.order_by(User.created_at.asc(), User.username.asc()).first()


def seed_campaigns() -> SeedResult:
    """Вставить шесть примерных кампаний.

    Ничего не делает, если кампании уже есть или нет ни одного
    пользователя. Ошибка вставки откатывает транзакцию и пишется
    в лог, наружу не пробрасывается.
    """
    if db.session.query(Campaign.id).first() is not None:
        logger.info("Campaigns already seeded")
        return SeedResult("already_seeded")

    owner = _first_user()
    if owner is None:
        logger.info("No users found. Please create a user first.")
        return SeedResult("no_users")

    try:
        db.session.add_all([
            Campaign(
                name=row["name"],
                category=row["category"],
                status="active",
                start_date=row["start_date"],
                end_date=row["end_date"],
                scan_count=row["scan_count"],
                image_url=None,
                created_by=owner.id,
            )
            for row in SAMPLE_CAMPAIGNS
        ])
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error seeding campaigns")
        return SeedResult("failed")

    logger.info("Sample campaigns seeded successfully (%s rows)", len(SAMPLE_CAMPAIGNS))
    return SeedResult("seeded", inserted=len(SAMPLE_CAMPAIGNS))


def seed_database() -> SeedResult:
    """Пользователи, затем кампании."""
    logger.info("Starting database seeding")
    seed_users()
    result = seed_campaigns()
    logger.info("Database seeding finished: %s", result.status)
    return result
