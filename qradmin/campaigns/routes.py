"""Маршруты кампаний.

Тяжёлая бизнес‑логика вынесена в
:mod:`qradmin.services.campaigns_service`,
:mod:`qradmin.services.analytics_service` и
:mod:`qradmin.services.qr_service`.
"""

import logging
import os
import secrets
import time

from flask import Response, current_app, jsonify, make_response, request
from werkzeug.utils import secure_filename

from ..helpers import require_auth, validate_body
from ..schemas import CampaignCreateSchema, CampaignUpdateSchema
from ..services import analytics_service, campaigns_service, qr_service

from . import bp

logger = logging.getLogger(__name__)

_UPDATE_ERRORS = {
    'campaign_not_found': (404, 'Campaign not found'),
    'permission_denied': (403, 'Permission denied'),
    'campaign_not_active': (400, 'Only active campaigns can be edited'),
    'start_date_locked': (400, 'Cannot modify start date or time for campaigns that have already started'),
    'invalid_dates': (400, 'End date must not be before start date'),
}


def _int_arg(name: str, default: int) -> int:
    """Целое из query-строки; пустое, нечисловое или 0 даёт значение по умолчанию."""
    raw = request.args.get(name)
    try:
        value = int(raw) if raw else 0
    except (ValueError, TypeError):
        value = 0
    return value or default


def public_base_url() -> str:
    return current_app.config.get('PUBLIC_BASE_URL') or request.host_url.rstrip('/')


def icon_file_for(icon_path):
    """Путь к файлу иконки в UPLOAD_FOLDER по её публичному URL (/uploads/<file>)."""
    if not icon_path:
        return None
    name = secure_filename(os.path.basename(icon_path))
    if not name:
        return None
    return os.path.join(current_app.config['UPLOAD_FOLDER'], name)


@bp.get('/campaigns/live')
def live_campaigns() -> Response:
    """Постраничный список кампаний.

    Параметры: ``page`` (>= 1), ``limit`` (1–100, по умолчанию 12),
    ``sortBy`` (createdAt / endDate / scanCount / name),
    ``sortOrder`` (asc / desc), ``filterCategory``, ``filterUser``.
    """
    require_auth()
    page = _int_arg('page', 1)
    limit = _int_arg('limit', 12)
    sort_by = request.args.get('sortBy') or 'createdAt'
    sort_order = 'asc' if request.args.get('sortOrder') == 'asc' else 'desc'

    if page < 1 or limit < 1 or limit > 100:
        return jsonify({'error': 'Invalid pagination parameters'}), 400
    if sort_by not in campaigns_service.SORT_FIELDS:
        return jsonify({'error': 'Invalid sort field'}), 400

    data = campaigns_service.list_live_campaigns(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        filter_category=request.args.get('filterCategory') or None,
        filter_user=request.args.get('filterUser') or None,
    )
    return jsonify(data)


@bp.get('/campaigns/categories')
def categories() -> Response:
    require_auth()
    return jsonify(campaigns_service.list_categories())


@bp.get('/campaigns/users')
def campaign_users() -> Response:
    require_auth()
    return jsonify(campaigns_service.list_campaign_users())


@bp.get('/campaigns/<campaign_id>')
def get_campaign(campaign_id: str) -> Response:
    require_auth()
    campaign = campaigns_service.get_campaign(campaign_id)
    if campaign is None:
        return jsonify({'error': 'Campaign not found'}), 404
    return jsonify(campaign.to_dict())


@bp.post('/campaigns')
def create_campaign() -> Response:
    user = require_auth()
    data, error = validate_body(CampaignCreateSchema)
    if error:
        return error

    campaign = campaigns_service.create_campaign(data.model_dump(), created_by=user.id)
    return jsonify(campaign.to_dict()), 201


@bp.put('/campaigns/<campaign_id>')
def update_campaign(campaign_id: str) -> Response:
    """Редактировать кампанию (админ или автор, только активные)."""
    user = require_auth()
    data, error = validate_body(CampaignUpdateSchema)
    if error:
        return error

    try:
        campaign = campaigns_service.update_campaign(campaign_id, data.model_dump(exclude_unset=True), user)
    except ValueError as exc:
        status, message = _UPDATE_ERRORS.get(str(exc), (400, str(exc)))
        return jsonify({'error': message}), status
    return jsonify(campaign.to_dict())


@bp.patch('/campaigns/<campaign_id>/scan')
def scan(campaign_id: str) -> Response:
    require_auth()
    ok, reason = campaigns_service.increment_scan_count(campaign_id)
    if not ok:
        logger.info("scan count not updated for %s: %s", campaign_id, reason)
        return jsonify({'error': reason or 'Failed to update scan count'}), 400
    return jsonify({'message': 'Scan count updated successfully'})


@bp.get('/campaigns/<campaign_id>/analytics/<day>')
def campaign_analytics(campaign_id: str, day: str) -> Response:
    """Аналитика кампании за день (``YYYY-MM-DD`` или ``today``)."""
    require_auth()
    if campaigns_service.get_campaign(campaign_id) is None:
        return jsonify({'error': 'Campaign not found'}), 404
    tz_name = current_app.config.get('ANALYTICS_TIMEZONE', 'Asia/Kolkata')
    try:
        data = analytics_service.campaign_analytics(campaign_id, day, tz_name=tz_name)
    except ValueError:
        return jsonify({'error': 'Invalid date'}), 400
    return jsonify(data)


@bp.get('/campaigns/<campaign_id>/scans')
def campaign_scans(campaign_id: str) -> Response:
    require_auth()
    if campaigns_service.get_campaign(campaign_id) is None:
        return jsonify({'error': 'Campaign not found'}), 404
    return jsonify(campaigns_service.list_scan_events(campaign_id))


@bp.get('/campaigns/<campaign_id>/qr.png')
def campaign_qr(campaign_id: str) -> Response:
    """PNG с QR-кодом, ведущим на публичный адрес сканирования."""
    require_auth()
    campaign = campaigns_service.get_campaign(campaign_id)
    if campaign is None:
        return jsonify({'error': 'Campaign not found'}), 404

    png = qr_service.render_qr_png(
        qr_service.scan_url(public_base_url(), campaign.id),
        border_style=campaign.border_style,
        icon_file=icon_file_for(campaign.icon_path),
    )
    resp = make_response(png)
    resp.headers['Content-Type'] = 'image/png'
    resp.headers['Content-Disposition'] = f'inline; filename=campaign-{campaign.id}.png'
    resp.headers['Cache-Control'] = 'no-cache'
    return resp


@bp.post('/upload/icon')
def upload_icon() -> Response:
    """Загрузить иконку для QR-кода (multipart, поле ``icon``).

    Принимаются только изображения (``image/*``) не больше
    ``MAX_ICON_BYTES`` (2 МБ).
    """
    require_auth()
    file = request.files.get('icon')
    if file is None or not file.filename:
        return jsonify({'error': 'No file uploaded'}), 400
    if not (file.mimetype or '').startswith('image/'):
        return jsonify({'error': 'Only image files are allowed for QR code icons'}), 400

    ext = os.path.splitext(secure_filename(file.filename))[1].lower()
    allowed = current_app.config.get('ALLOWED_ICON_EXTENSIONS') or set()
    if ext.lstrip('.') not in allowed:
        return jsonify({'error': 'Only image files are allowed for QR code icons'}), 400

    blob = file.read()
    max_bytes = int(current_app.config.get('MAX_ICON_BYTES', 2 * 1024 * 1024))
    if len(blob) > max_bytes:
        return jsonify({'error': 'File too large'}), 413

    filename = f"icon-{int(time.time() * 1000)}-{secrets.token_hex(4)}{ext}"
    folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(folder, exist_ok=True)
    with open(os.path.join(folder, filename), 'wb') as fh:
        fh.write(blob)

    logger.info("icon uploaded: %s (%s bytes)", filename, len(blob))
    return jsonify({'iconPath': f'/uploads/{filename}'})
