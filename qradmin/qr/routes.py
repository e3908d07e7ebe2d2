"""Маршруты публичного сканирования QR-кодов."""

import logging

from flask import Response, current_app, redirect, render_template, request, send_from_directory

from ..campaigns.routes import icon_file_for, public_base_url
from ..helpers import client_ip
from ..services import campaigns_service, qr_service

from . import bp

logger = logging.getLogger(__name__)


@bp.get('/qrcode/<campaign_id>')
def scan_qr(campaign_id: str) -> Response:
    """Обработать переход по QR-коду.

    Истёкшая кампания или достигнутый лимит показывают страницу с
    причиной, скан при этом не записывается. Иначе сохраняется
    ScanEvent (регион — адрес клиента), счётчик растёт, и клиент
    уходит на ``target_url`` (если задан) или видит страницу успеха.
    """
    campaign = campaigns_service.get_campaign(campaign_id)
    if campaign is None:
        return render_template('qr_scan.html', state='not_found', campaign=None), 404

    if campaign.status == 'expired':
        return render_template('qr_scan.html', state='expired', campaign=campaign)

    if campaign.limit_reached:
        return render_template('qr_scan.html', state='limit_reached', campaign=campaign)

    ip = client_ip()
    campaigns_service.record_scan_event(
        campaign.id,
        region=ip,
        user_agent=request.headers.get('User-Agent'),
        ip_address=ip,
    )
    logger.info("QR code scanned: campaign=%s region=%s target=%s", campaign.id, ip, campaign.target_url or "internal")

    if campaign.target_url:
        return redirect(campaign.target_url, code=302)

    campaign = campaigns_service.get_campaign(campaign_id)
    return render_template('qr_scan.html', state='success', campaign=campaign)


@bp.get('/qr-view/<campaign_id>')
def view_qr(campaign_id: str) -> Response:
    """Страница кампании с изображением QR-кода."""
    campaign = campaigns_service.get_campaign(campaign_id)
    if campaign is None:
        return render_template('not_found.html'), 404

    url = qr_service.scan_url(public_base_url(), campaign.id)
    image = qr_service.render_qr_data_uri(
        url,
        border_style=campaign.border_style,
        icon_file=icon_file_for(campaign.icon_path),
    )
    return render_template('qr_view.html', campaign=campaign, scan_url=url, qr_image=image)


@bp.get('/uploads/<path:filename>')
def uploaded_file(filename: str) -> Response:
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
