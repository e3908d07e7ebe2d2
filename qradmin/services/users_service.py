"""Сервисный слой для пользователей админки.

Регистрация, проверка учётных данных, смена пароля и статуса.
Маршруты в :mod:`qradmin.auth.routes` и :mod:`qradmin.users.routes`
превращаются в тонкие HTTP-обёртки. Ошибки бизнес-логики
сигнализируются через ``ValueError("<код>")``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..extensions import db
from ..models import User

logger = logging.getLogger(__name__)


def list_users() -> List[Dict[str, Any]]:
    """Все пользователи (без хешей паролей), старые первыми."""
    users = User.query.order_by(User.created_at.asc()).all()
    return [u.to_dict() for u in users]


def get_user(user_id: str) -> Optional[User]:
    return db.session.get(User, user_id)


def get_user_by_username(username: str) -> Optional[User]:
    return User.query.filter_by(username=(username or "").strip()).first()


def create_user(username: str, password: str, is_admin: bool = False, is_active: bool = True) -> User:
    """Создать пользователя.

    Если имя занято, возбуждается ``ValueError("username_exists")``.
    """
    username = (username or "").strip()
    if get_user_by_username(username) is not None:
        raise ValueError("username_exists")

    user = User(username=username, is_admin=bool(is_admin), is_active=bool(is_active))
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info("user created: %s (admin=%s, active=%s)", user.username, user.is_admin, user.is_active)
    return user


def authenticate(username: str, password: str) -> Optional[User]:
    """Вернуть пользователя при верных учётных данных.

    Деактивированные пользователи не проходят проверку.
    """
    user = get_user_by_username(username)
    if user is None or not user.is_active:
        return None
    if not user.check_password(password):
        return None
    return user


def change_password(user_id: str, current_password: str, new_password: str) -> None:
    user = get_user(user_id)
    if user is None:
        raise ValueError("User not found")
    if not user.check_password(current_password):
        raise ValueError("Current password is incorrect")
    user.set_password(new_password)
    db.session.commit()
    logger.info("password changed for user %s", user.username)


def count_active_users() -> int:
    return User.query.filter(User.is_active.is_(True)).count()


def set_user_status(user_id: str, is_active: bool) -> User:
    """Включить или выключить пользователя.

    Последнего активного пользователя выключить нельзя:
    ``ValueError("last_active_user")``. Неизвестный id даёт
    ``ValueError("user_not_found")``.
    """
    user = get_user(user_id)
    if user is None:
        raise ValueError("user_not_found")

    if not is_active and user.is_active and count_active_users() <= 1:
        raise ValueError("last_active_user")

    user.is_active = bool(is_active)
    db.session.commit()
    logger.info("user %s status changed: active=%s", user.username, user.is_active)
    return user
