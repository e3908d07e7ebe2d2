"""Сервис уведомлений администраторов.

Задача этого модуля — найти кампании, требующие внимания:

- активные кампании, которые закончатся в ближайшие N дней
  (по умолчанию 3, ``NOTIFY_EXPIRING_DAYS``);
- активные кампании, достигшие лимита сканов;

и превратить их в персональные уведомления для каждого активного
администратора. Повторный запуск не создаёт дублей: ключ уникальности
``(campaign_id, user_id, type)``.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from ..extensions import db
from ..models import Campaign, Notification, User, utcnow

logger = logging.getLogger(__name__)


def get_admin_notifications(now: Optional[datetime] = None, expiring_days: int = 3) -> Dict[str, List[Dict[str, Any]]]:
    """Вернуть ``{"expiring": [...], "scanLimitReached": [...]}``.

    ``daysLeft`` округляется вверх: кампания, которой осталось 25 часов,
    истекает «через 2 дня».
    """
    now = now or utcnow()
    horizon = now + timedelta(days=expiring_days)

    expiring_rows = (
        db.session.query(Campaign, User.username)
        .outerjoin(User, Campaign.created_by == User.id)
        .filter(
            Campaign.status == "active",
            Campaign.end_date > now,
            Campaign.end_date <= horizon,
        )
        .order_by(Campaign.end_date.asc())
        .all()
    )
    limit_rows = (
        db.session.query(Campaign, User.username)
        .outerjoin(User, Campaign.created_by == User.id)
        .filter(
            Campaign.status == "active",
            Campaign.scan_limit.isnot(None),
            Campaign.scan_count >= Campaign.scan_limit,
        )
        .order_by(Campaign.name.asc())
        .all()
    )

    expiring = []
    for campaign, username in expiring_rows:
        seconds_left = (campaign.end_date - now).total_seconds()
        expiring.append({
            "id": campaign.id,
            "name": campaign.name,
            "category": campaign.category,
            "endDate": campaign.end_date.isoformat(),
            "daysLeft": int(math.ceil(seconds_left / 86400)),
            "createdByUsername": username or "Unknown",
        })

    reached = [
        {
            "id": campaign.id,
            "name": campaign.name,
            "category": campaign.category,
            "scanCount": int(campaign.scan_count or 0),
            "scanLimit": int(campaign.scan_limit),
            "createdByUsername": username or "Unknown",
        }
        for campaign, username in limit_rows
    ]
    return {"expiring": expiring, "scanLimitReached": reached}


def _exists(campaign_id: str, user_id: str, ntype: str) -> bool:
    return (
        db.session.query(Notification.id)
        .filter_by(campaign_id=campaign_id, user_id=user_id, type=ntype)
        .first()
        is not None
    )


def generate_notifications_for_admins(now: Optional[datetime] = None, expiring_days: int = 3) -> Dict[str, int]:
    """Создать недостающие уведомления для всех активных администраторов.

    Возвращает ``{"created": <новых>, "total": <всего уведомлений>}``.
    """
    items = get_admin_notifications(now=now, expiring_days=expiring_days)
    admins = User.query.filter(User.is_admin.is_(True), User.is_active.is_(True)).all()

    created = 0
    for admin in admins:
        for item in items["expiring"]:
            if _exists(item["id"], admin.id, "expiring_campaign"):
                continue
            db.session.add(Notification(
                type="expiring_campaign",
                title="Campaign Expiring Soon",
                message=f'Campaign "{item["name"]}" expires in {item["daysLeft"]} day(s)',
                campaign_id=item["id"],
                campaign_name=item["name"],
                user_id=admin.id,
            ))
            created += 1
        for item in items["scanLimitReached"]:
            if _exists(item["id"], admin.id, "scan_limit_reached"):
                continue
            db.session.add(Notification(
                type="scan_limit_reached",
                title="Scan Limit Reached",
                message=f'Campaign "{item["name"]}" has reached {item["scanCount"]}/{item["scanLimit"]} scans',
                campaign_id=item["id"],
                campaign_name=item["name"],
                user_id=admin.id,
            ))
            created += 1
        # flush, чтобы _exists видел уже добавленные записи
        db.session.flush()

    db.session.commit()
    total = int(db.session.query(func.count(Notification.id)).scalar() or 0)
    if created:
        logger.info("generated %s admin notification(s), total %s", created, total)
    return {"created": created, "total": total}


def list_user_notifications(user_id: str) -> Dict[str, Any]:
    """Уведомления пользователя (новые первыми) и число непрочитанных."""
    items = (
        Notification.query.filter_by(user_id=user_id)
        .order_by(Notification.created_at.desc())
        .all()
    )
    unread = Notification.query.filter_by(user_id=user_id, is_read=False).count()
    return {"notifications": [n.to_dict() for n in items], "unreadCount": int(unread)}


def create_notification(user_id: str, data: Dict[str, Any]) -> Notification:
    notification = Notification(
        type=data.get("type") or "expiring_campaign",
        title=data["title"],
        message=data["message"],
        campaign_id=data.get("campaign_id"),
        campaign_name=data.get("campaign_name") or data["title"],
        user_id=user_id,
        is_read=bool(data.get("is_read", False)),
    )
    db.session.add(notification)
    db.session.commit()
    return notification


def mark_as_read(notification_id: str, user_id: str) -> bool:
    """Пометить уведомление прочитанным. Чужие уведомления не трогаем."""
    notification = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if notification is None:
        return False
    notification.is_read = True
    db.session.commit()
    return True
