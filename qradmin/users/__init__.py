"""Blueprint управления пользователями (только администраторы).

Маршруты:

- ``GET/POST /api/users`` — список и создание;
- ``GET /api/users/<id>``;
- ``PATCH /api/users/<id>/status`` — включить/выключить;
- ``GET /api/users/<id>/stats`` — статистика кампаний (любой вошедший).
"""

from flask import Blueprint

bp = Blueprint("users", __name__, url_prefix="/api/users")

from . import routes  # noqa: E402,F401
