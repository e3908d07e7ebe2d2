"""Blueprint аутентификации (cookie-сессии).

Маршруты:

- ``POST /api/auth/register`` — регистрация и автоматический вход;
- ``POST /api/auth/login`` / ``POST /api/auth/logout``;
- ``GET /api/auth/me`` — текущий пользователь;
- ``PATCH /api/auth/change-password`` — смена пароля.
"""

from flask import Blueprint

bp = Blueprint("auth", __name__, url_prefix="/api/auth")

from . import routes  # noqa: E402,F401
