"""HTTP-обёртки над :mod:`qradmin.services.notifications_service`."""

from __future__ import annotations

import logging

from flask import current_app, jsonify

from . import bp
from ..helpers import require_admin, require_auth, validate_body
from ..schemas import NotificationCreateSchema
from ..services import notifications_service

logger = logging.getLogger(__name__)


def _expiring_days() -> int:
    return int(current_app.config.get("NOTIFY_EXPIRING_DAYS", 3))


@bp.get("/admin/notifications")
def api_admin_notifications():
    """Кампании, требующие внимания администратора."""
    require_admin()
    data = notifications_service.get_admin_notifications(expiring_days=_expiring_days())
    return jsonify(data)


@bp.post("/admin/generate-notifications")
def api_generate_notifications():
    admin = require_admin()
    result = notifications_service.generate_notifications_for_admins(expiring_days=_expiring_days())
    logger.info("notifications generated by %s: %s", admin.username, result)
    return jsonify({
        "success": True,
        "message": f"Generated {result['created']} new notifications",
        **result,
    })


@bp.get("/notifications")
def api_list_notifications():
    user = require_auth()
    return jsonify(notifications_service.list_user_notifications(user.id))


@bp.post("/notifications")
def api_create_notification():
    user = require_auth()
    data, error = validate_body(NotificationCreateSchema)
    if error:
        return error
    notification = notifications_service.create_notification(user.id, data.model_dump())
    return jsonify(notification.to_dict()), 201


@bp.post("/notifications/<notification_id>/mark-read")
def api_mark_read(notification_id: str):
    user = require_auth()
    if not notifications_service.mark_as_read(notification_id, user.id):
        return jsonify({"error": "Notification not found or access denied"}), 404
    return jsonify({"success": True})
