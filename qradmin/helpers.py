"""
Вспомогательные функции для обработки запросов.

Текущий пользователь из cookie-сессии, проверки прав (auth / admin),
разбор тела запроса через pydantic-схемы и определение IP клиента.
Эти функции используются во многих маршрутах и вынесены в отдельный
модуль для переиспользования.
"""

from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from flask import abort, jsonify, request, session
from pydantic import BaseModel, ValidationError

from .extensions import db
from .models import User

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def get_current_user() -> Optional[User]:
    """Вернуть активного пользователя из сессии или None.

    Деактивированный пользователь считается неавторизованным, даже если
    его cookie-сессия ещё жива.
    """
    user_id = session.get("user_id")
    if not user_id:
        return None
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


def is_authenticated() -> bool:
    return get_current_user() is not None


def require_auth() -> User:
    """Вернуть текущего пользователя или прервать запрос с 401.

    Ответ (JSON или редирект на /auth) формируется в errorhandler(401),
    см. qradmin/__init__.py.
    """
    user = get_current_user()
    if user is None:
        abort(401)
    return user


def require_admin() -> User:
    """Проверить, что пользователь авторизован и является администратором."""
    user = require_auth()
    if not user.is_admin:
        abort(403)
    return user


def login_user(user: User) -> None:
    session.clear()
    session["user_id"] = user.id
    session["username"] = user.username
    session.permanent = True


def logout_user() -> None:
    session.clear()


def client_ip() -> str:
    """IP клиента с учётом X-Forwarded-For (первый адрес в цепочке)."""
    forwarded = request.headers.get("X-Forwarded-For") or ""
    ip = forwarded.split(",")[0].strip() or (request.remote_addr or "")
    return ip or "unknown"


def _error_details(exc: ValidationError) -> List[Dict[str, Any]]:
    # В ctx pydantic может положить сам объект исключения, в JSON его не отдаём.
    return [
        {
            "path": [str(p) for p in err.get("loc", ())],
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


def validate_body(schema: Type[SchemaT]) -> Tuple[Optional[SchemaT], Any]:
    """Разобрать JSON-тело запроса по схеме.

    Возвращает ``(model, None)`` при успехе или ``(None, response)``
    с ответом 400 ``{"error": "Validation failed", "details": [...]}``.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    try:
        return schema.model_validate(payload), None
    except ValidationError as exc:
        return None, (jsonify(error="Validation failed", details=_error_details(exc)), 400)
