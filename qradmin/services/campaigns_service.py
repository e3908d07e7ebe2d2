"""Сервисный слой для кампаний и событий сканирования.

Здесь размещается бизнес-логика работы с Campaign / ScanEvent:
постраничный список, создание и редактирование, счётчик сканов
и автоматическое истечение кампаний. Маршруты в
:mod:`qradmin.campaigns.routes` и :mod:`qradmin.qr.routes`
превращаются в тонкие HTTP-обёртки.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_

from ..extensions import db
from ..models import Campaign, ScanEvent, User, utcnow

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "createdAt": Campaign.created_at,
    "endDate": Campaign.end_date,
    "scanCount": Campaign.scan_count,
    "name": Campaign.name,
}

# Поля, которые можно менять через PUT /api/campaigns/<id>
EDITABLE_FIELDS = (
    "name",
    "category",
    "description",
    "start_date",
    "end_date",
    "scan_limit",
    "image_url",
    "icon_path",
    "border_style",
    "target_url",
)


def list_live_campaigns(
    page: int = 1,
    limit: int = 12,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
    filter_category: Optional[str] = None,
    filter_user: Optional[str] = None,
) -> Dict[str, Any]:
    """Вернуть страницу кампаний и данные пагинации.

    Параметры уже провалидированы маршрутом: ``page >= 1``,
    ``1 <= limit <= 100``, ``sort_by`` из :data:`SORT_FIELDS`.
    """
    query = Campaign.query
    if filter_category:
        query = query.filter(Campaign.category == filter_category)
    if filter_user:
        query = query.filter(Campaign.created_by == filter_user)

    total = query.count()

    column = SORT_FIELDS.get(sort_by, Campaign.created_at)
    ordering = column.asc() if sort_order == "asc" else column.desc()
    items = (
        query.order_by(ordering, Campaign.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "campaigns": [c.to_dict() for c in items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": int(math.ceil(total / limit)) if limit else 0,
        },
    }


def list_categories() -> List[str]:
    rows = db.session.query(Campaign.category).distinct().order_by(Campaign.category.asc()).all()
    return [r[0] for r in rows]


def list_campaign_users() -> List[Dict[str, str]]:
    """Пользователи, создавшие хотя бы одну кампанию (для фильтра)."""
    rows = (
        db.session.query(User.id, User.username)
        .join(Campaign, Campaign.created_by == User.id)
        .distinct()
        .order_by(User.username.asc())
        .all()
    )
    return [{"id": r[0], "username": r[1]} for r in rows]


def get_campaign(campaign_id: str) -> Optional[Campaign]:
    return db.session.get(Campaign, campaign_id)


def create_campaign(data: Dict[str, Any], created_by: str) -> Campaign:
    """Создать кампанию: статус ``active``, счётчик сканов 0."""
    if db.session.get(User, created_by) is None:
        raise ValueError("user_not_found")

    campaign = Campaign(
        name=data["name"],
        category=data["category"],
        description=data.get("description"),
        start_date=data["start_date"],
        end_date=data["end_date"],
        scan_limit=data.get("scan_limit"),
        image_url=data.get("image_url"),
        icon_path=data.get("icon_path"),
        border_style=data.get("border_style") or "none",
        target_url=data.get("target_url"),
        created_by=created_by,
        status="active",
        scan_count=0,
    )
    db.session.add(campaign)
    db.session.commit()
    logger.info("campaign created: %s (%s) by %s", campaign.name, campaign.id, created_by)
    return campaign


def update_campaign(campaign_id: str, changes: Dict[str, Any], user: User, now: Optional[datetime] = None) -> Campaign:
    """Отредактировать кампанию.

    Коды ошибок (``ValueError``):

    - ``campaign_not_found`` — нет такой кампании;
    - ``permission_denied`` — редактировать может только админ или автор;
    - ``campaign_not_active`` — истёкшие кампании не редактируются;
    - ``start_date_locked`` — кампания уже началась, а дата старта меняется;
    - ``invalid_dates`` — итоговая дата окончания раньше даты начала.
    """
    campaign = get_campaign(campaign_id)
    if campaign is None:
        raise ValueError("campaign_not_found")
    if not user.is_admin and campaign.created_by != user.id:
        raise ValueError("permission_denied")
    if campaign.status != "active":
        raise ValueError("campaign_not_active")

    now = now or utcnow()
    new_start = changes.get("start_date")
    if campaign.start_date <= now and new_start is not None and new_start != campaign.start_date:
        raise ValueError("start_date_locked")

    start = new_start or campaign.start_date
    end = changes.get("end_date") or campaign.end_date
    if end < start:
        raise ValueError("invalid_dates")

    for field in EDITABLE_FIELDS:
        if field in changes:
            setattr(campaign, field, changes[field])
    campaign.updated_at = utcnow()
    db.session.commit()
    logger.info("campaign updated: %s by %s", campaign.id, user.username)
    return campaign


def increment_scan_count(campaign_id: str) -> Tuple[bool, Optional[str]]:
    """Увеличить счётчик сканов.

    Проверка статуса и лимита входит в условие самого UPDATE, поэтому
    параллельные сканы не превышают ``scan_limit``.
    Возвращает ``(True, None)`` или ``(False, причина)``.
    """
    campaign = get_campaign(campaign_id)
    if campaign is None:
        return False, "Campaign not found"

    changed = Campaign.query.filter(
        Campaign.id == campaign_id,
        Campaign.status == "active",
        or_(
            Campaign.scan_limit.is_(None),
            Campaign.scan_limit == 0,
            Campaign.scan_count < Campaign.scan_limit,
        ),
    ).update(
        {Campaign.scan_count: Campaign.scan_count + 1, Campaign.updated_at: utcnow()},
        synchronize_session=False,
    )
    db.session.commit()
    db.session.refresh(campaign)

    if not changed:
        if campaign.status != "active":
            return False, "Campaign is not active"
        return False, "Scan limit reached"
    return True, None


def record_scan_event(
    campaign_id: str,
    region: str,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> ScanEvent:
    """Записать событие сканирования и увеличить счётчик кампании.

    Событие сохраняется даже если счётчик обновить не удалось
    (причина пишется в лог).
    """
    event = ScanEvent(
        campaign_id=campaign_id,
        region=(region or "Unknown")[:255],
        user_agent=user_agent[:512] if user_agent else None,
        ip_address=ip_address,
        scanned_at=utcnow(),
    )
    db.session.add(event)
    db.session.commit()

    ok, reason = increment_scan_count(campaign_id)
    if not ok:
        logger.warning("scan count not updated for campaign %s: %s", campaign_id, reason)
    return event


def list_scan_events(campaign_id: str) -> List[Dict[str, Any]]:
    events = (
        ScanEvent.query.filter(ScanEvent.campaign_id == campaign_id)
        .order_by(ScanEvent.scanned_at.desc())
        .all()
    )
    return [e.to_dict() for e in events]


def expire_finished_campaigns(now: Optional[datetime] = None) -> int:
    """Перевести активные кампании с прошедшей датой окончания в ``expired``.

    Возвращает количество изменённых кампаний.
    """
    now = now or utcnow()
    changed = Campaign.query.filter(
        Campaign.status == "active",
        Campaign.end_date < now,
    ).update({Campaign.status: "expired", Campaign.updated_at: now}, synchronize_session=False)
    db.session.commit()
    if changed:
        logger.info("expired %s finished campaign(s)", changed)
    return int(changed or 0)
