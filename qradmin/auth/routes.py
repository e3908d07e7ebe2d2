"""
Маршруты входа, выхода и регистрации.

Используются cookie‑сессии: после успешного входа в сессии лежат
``user_id`` и ``username``. Права проверяются в
helpers.require_auth() / helpers.require_admin().
"""

import logging

from flask import Response, current_app, jsonify

from ..helpers import client_ip, login_user, logout_user, require_auth, validate_body
from ..schemas import ChangePasswordSchema, LoginSchema, RegisterSchema
from ..security.rate_limit import check_rate_limit
from ..services import users_service

from . import bp

logger = logging.getLogger(__name__)


@bp.post('/register')
def register() -> Response:
    """Зарегистрировать пользователя и сразу выполнить вход."""
    data, error = validate_body(RegisterSchema)
    if error:
        return error

    try:
        user = users_service.create_user(data.username, data.password)
    except ValueError:
        logger.warning("registration attempt with existing username: %s", data.username)
        return jsonify({'error': 'Username already exists'}), 409

    login_user(user)
    logger.info("user registered: %s", user.username)
    return jsonify({'message': 'User created successfully', 'user': user.to_dict()}), 201


@bp.post('/login')
def login() -> Response:
    """
    Вход пользователя.

    Клиент отправляет JSON с полями 'username' и 'password'.
    Деактивированные пользователи получают тот же ответ 401, что и
    при неверном пароле.
    """
    ip = client_ip()
    limit = int(current_app.config.get("RATE_LIMIT_LOGIN_PER_MINUTE", 10))
    ok, info = check_rate_limit(bucket="login", ident=ip, limit=limit, window_seconds=60)
    if not ok:
        return jsonify(error="Too many login attempts", **info.to_dict()), 429

    data, error = validate_body(LoginSchema)
    if error:
        return error

    user = users_service.authenticate(data.username, data.password)
    if user is None:
        logger.warning("failed login attempt for %s from %s", data.username, ip)
        return jsonify({'error': 'Invalid username or password'}), 401

    login_user(user)
    logger.info("user logged in: %s", user.username)
    return jsonify({'message': 'Login successful', 'user': user.to_dict()}), 200


@bp.post('/logout')
def logout() -> Response:
    """Выйти (очистить cookie-сессию)."""
    logout_user()
    return jsonify({'message': 'Logout successful'}), 200


@bp.get('/me')
def me() -> Response:
    user = require_auth()
    return jsonify({'user': user.to_dict()}), 200


@bp.patch('/change-password')
def change_password() -> Response:
    user = require_auth()
    data, error = validate_body(ChangePasswordSchema)
    if error:
        return error

    try:
        users_service.change_password(user.id, data.current_password, data.new_password)
    except ValueError as exc:
        logger.warning("password change failed for %s: %s", user.username, exc)
        return jsonify({'error': str(exc)}), 400
    return jsonify({'message': 'Password changed successfully'}), 200
