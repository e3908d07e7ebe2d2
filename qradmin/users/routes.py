"""Маршруты управления пользователями.

Бизнес‑логика вынесена в :mod:`qradmin.services.users_service`.
"""

import logging

from flask import Response, jsonify

from ..helpers import logout_user, require_admin, require_auth, validate_body
from ..schemas import CreateUserByAdminSchema, UpdateUserStatusSchema
from ..services import analytics_service, users_service

from . import bp

logger = logging.getLogger(__name__)


@bp.get('')
def list_users() -> Response:
    require_admin()
    return jsonify(users_service.list_users())


@bp.post('')
def create_user() -> Response:
    admin = require_admin()
    data, error = validate_body(CreateUserByAdminSchema)
    if error:
        return error

    try:
        user = users_service.create_user(
            data.username,
            data.password,
            is_admin=data.is_admin,
            is_active=data.is_active,
        )
    except ValueError:
        return jsonify({'error': 'Username already exists'}), 409

    logger.info("user %s created by admin %s", user.username, admin.username)
    return jsonify(user.to_dict()), 201


@bp.get('/<user_id>')
def get_user(user_id: str) -> Response:
    require_admin()
    user = users_service.get_user(user_id)
    if user is None:
        return jsonify({'error': 'User not found'}), 404
    return jsonify(user.to_dict())


@bp.patch('/<user_id>/status')
def update_status(user_id: str) -> Response:
    """Включить или выключить пользователя.

    Если администратор выключил сам себя, сессия завершается, а в
    ответе появляется ``selfDeactivated: true``.
    """
    admin = require_admin()
    data, error = validate_body(UpdateUserStatusSchema)
    if error:
        return error

    try:
        user = users_service.set_user_status(user_id, data.is_active)
    except ValueError as exc:
        if str(exc) == 'user_not_found':
            return jsonify({'error': 'User not found'}), 404
        return jsonify({'error': 'There must be at least one active user in the system.'}), 400

    payload = user.to_dict()
    if user.id == admin.id and not data.is_active:
        logout_user()
        payload.update(
            selfDeactivated=True,
            message='Account deactivated successfully. You will be logged out.',
        )
    return jsonify(payload)


@bp.get('/<user_id>/stats')
def user_stats(user_id: str) -> Response:
    require_auth()
    try:
        return jsonify(analytics_service.user_stats(user_id))
    except ValueError:
        return jsonify({'error': 'User not found'}), 404
