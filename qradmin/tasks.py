"""Celery-задачи приложения.

Периодические задачи (см. beat_schedule в qradmin/extensions.py):

- ``expire_finished_campaigns`` — закрывает кампании с прошедшей датой;
- ``generate_admin_notifications`` — создаёт уведомления админам.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import current_app

from qradmin.extensions import celery_app
from qradmin.services.campaigns_service import expire_finished_campaigns as _expire
from qradmin.services.notifications_service import generate_notifications_for_admins

logger = logging.getLogger(__name__)


@celery_app.task(name="qradmin.tasks.expire_finished_campaigns")
def expire_finished_campaigns() -> int:
    """Перевести истёкшие кампании в статус ``expired``."""
    changed = _expire()
    logger.info("expire_finished_campaigns: %s changed", changed)
    return changed


@celery_app.task(name="qradmin.tasks.generate_admin_notifications")
def generate_admin_notifications() -> dict[str, Any]:
    """Сначала закрыть истёкшие кампании, затем создать уведомления."""
    _expire()
    days = int(current_app.config.get("NOTIFY_EXPIRING_DAYS", 3))
    result = generate_notifications_for_admins(expiring_days=days)
    logger.info("generate_admin_notifications: %s", result)
    return result
