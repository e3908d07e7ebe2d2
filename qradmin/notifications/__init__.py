"""Blueprint уведомлений.

Маршруты:

- ``GET /api/admin/notifications`` — истекающие кампании и кампании,
  упёршиеся в лимит сканов (только админ);
- ``POST /api/admin/generate-notifications`` — создать уведомления
  для всех администраторов;
- ``GET/POST /api/notifications`` — уведомления текущего пользователя;
- ``POST /api/notifications/<id>/mark-read``.
"""

from flask import Blueprint

bp = Blueprint("notifications", __name__, url_prefix="/api")

from . import routes  # noqa: E402,F401
