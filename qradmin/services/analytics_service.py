"""Сервис аналитики по кампаниям и сканам.

Функции модуля собирают агрегаты для дашборда и страницы
аналитики: общие счётчики, топ кампаний, распределение по регионам,
рост пользователей/кампаний по месяцам и дневная аналитика одной
кампании (регионы + почасовая разбивка).

Группировка по часам и месяцам делается в Python, чтобы одинаково
работать на SQLite и PostgreSQL.
"""

from __future__ import annotations

import math
from collections import Counter, OrderedDict
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List
from zoneinfo import ZoneInfo

from sqlalchemy import case, func

from ..extensions import db
from ..models import Campaign, ScanEvent, User, utcnow


def _campaign_counts(*filters) -> Dict[str, int]:
    row = (
        db.session.query(
            func.count(Campaign.id),
            func.coalesce(func.sum(case((Campaign.status == "active", 1), else_=0)), 0),
            func.coalesce(func.sum(case((Campaign.status == "expired", 1), else_=0)), 0),
        )
        .filter(*filters)
        .one()
    )
    return {"total": int(row[0] or 0), "active": int(row[1] or 0), "expired": int(row[2] or 0)}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _total_scans() -> int:
    return int(db.session.query(func.count(ScanEvent.id)).scalar() or 0)


def parse_report_date(value: str) -> date:
    """Разобрать ``YYYY-MM-DD`` или ``today`` (UTC).

    При ошибке формата возбуждается ``ValueError("invalid_date")``.
    """
    value = (value or "today").strip()
    if value == "today":
        return utcnow().date()
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValueError("invalid_date") from None


def campaign_analytics(campaign_id: str, day: str = "today", tz_name: str = "Asia/Kolkata") -> Dict[str, Any]:
    """Дневная аналитика кампании.

    Берутся сканы за календарные сутки (UTC) указанной даты.
    Часы в ``hourlyData`` приведены к часовому поясу отчётов
    ``tz_name`` (по умолчанию Asia/Kolkata).
    """
    target = parse_report_date(day)
    start = datetime.combine(target, time.min)
    end = start + timedelta(days=1)

    events = (
        ScanEvent.query.filter(
            ScanEvent.campaign_id == campaign_id,
            ScanEvent.scanned_at >= start,
            ScanEvent.scanned_at < end,
        )
        .all()
    )

    tz = ZoneInfo(tz_name)
    regions: Counter = Counter()
    hours: Counter = Counter()
    for ev in events:
        regions[ev.region] += 1
        local = ev.scanned_at.replace(tzinfo=timezone.utc).astimezone(tz)
        hours[local.hour] += 1

    return {
        "regionData": [{"region": r, "count": c} for r, c in regions.most_common()],
        "hourlyData": [{"hour": h, "count": hours[h]} for h in sorted(hours)],
        "totalScans": len(events),
        "date": day,
    }


def overall_stats() -> Dict[str, int]:
    counts = _campaign_counts()
    return {
        "totalCampaigns": counts["total"],
        "totalScans": _total_scans(),
        "activeCampaigns": counts["active"],
        "expiredCampaigns": counts["expired"],
    }


def user_stats(user_id: str) -> Dict[str, Any]:
    """Статистика кампаний пользователя.

    Неизвестный пользователь: ``ValueError("user_not_found")``.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise ValueError("user_not_found")

    counts = _campaign_counts(Campaign.created_by == user_id)
    scans = (
        db.session.query(func.count(ScanEvent.id))
        .join(Campaign, ScanEvent.campaign_id == Campaign.id)
        .filter(Campaign.created_by == user_id)
        .scalar()
        or 0
    )
    return {
        "totalCampaigns": counts["total"],
        "totalScans": int(scans),
        "activeCampaigns": counts["active"],
        "expiredCampaigns": counts["expired"],
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


def analytics_overall() -> Dict[str, int]:
    counts = _campaign_counts()
    total_scans = _total_scans()
    total_users = int(db.session.query(func.count(User.id)).scalar() or 0)
    avg = _round_half_up(total_scans / counts["total"]) if counts["total"] else 0
    return {
        "totalCampaigns": counts["total"],
        "totalScans": total_scans,
        "totalUsers": total_users,
        "activeCampaigns": counts["active"],
        "avgScansPerCampaign": avg,
    }


def top_campaigns(limit: int = 5) -> List[Dict[str, Any]]:
    rows = Campaign.query.order_by(Campaign.scan_count.desc(), Campaign.name.asc()).limit(limit).all()
    return [
        {
            "id": c.id,
            "name": c.name,
            "scanCount": int(c.scan_count or 0),
            "category": c.category,
            "createdAt": c.created_at.isoformat() if c.created_at else None,
        }
        for c in rows
    ]


def region_stats() -> List[Dict[str, Any]]:
    """Распределение сканов по регионам с долей в процентах (округлённой)."""
    cnt = func.count(ScanEvent.id)
    rows = (
        db.session.query(ScanEvent.region, cnt)
        .group_by(ScanEvent.region)
        .order_by(cnt.desc(), ScanEvent.region.asc())
        .all()
    )
    total = sum(int(r[1]) for r in rows)
    return [
        {
            "region": r[0],
            "scanCount": int(r[1]),
            "percentage": _round_half_up(int(r[1]) / total * 100) if total else 0,
        }
        for r in rows
    ]


def user_growth() -> List[Dict[str, Any]]:
    """Количество новых пользователей и кампаний по месяцам (``YYYY-MM``)."""
    users = Counter(
        dt.strftime("%Y-%m") for (dt,) in db.session.query(User.created_at).all() if dt is not None
    )
    campaigns = Counter(
        dt.strftime("%Y-%m") for (dt,) in db.session.query(Campaign.created_at).all() if dt is not None
    )

    months: "OrderedDict[str, Dict[str, int]]" = OrderedDict()
    for month in sorted(set(users) | set(campaigns)):
        months[month] = {"userCount": users.get(month, 0), "campaignCount": campaigns.get(month, 0)}
    return [{"month": m, **data} for m, data in months.items()]


def add_new_scan_events() -> Dict[str, int]:
    """При хранении в БД сканы приходят только через /qrcode, генерации нет."""
    return {"added": 0, "total": _total_scans()}
