"""Генерация PNG с QR-кодом кампании.

QR-код всегда указывает на публичный адрес сканирования
``<base>/qrcode/<campaign_id>``: переход по нему фиксирует скан и
уже потом перенаправляет на ``target_url`` кампании.
"""

from __future__ import annotations

import base64
import io
import logging
import os
from typing import Optional

import qrcode
from PIL import Image

logger = logging.getLogger(__name__)

# Ширина белой рамки (в модулях QR) для стилей border_style
BORDER_WIDTHS = {"thick": 4, "none": 1}


def scan_url(base_url: str, campaign_id: str) -> str:
    return f"{(base_url or '').rstrip('/')}/qrcode/{campaign_id}"


def _overlay_icon(img: Image.Image, icon_file: str) -> Image.Image:
    """Наложить иконку по центру (не более 1/4 ширины кода)."""
    with Image.open(icon_file) as icon:
        icon = icon.convert("RGBA")
        side = max(1, img.size[0] // 4)
        icon.thumbnail((side, side))
        pos = ((img.size[0] - icon.size[0]) // 2, (img.size[1] - icon.size[1]) // 2)
        img.paste(icon, pos, icon)
    return img


def render_qr_png(data: str, border_style: str = "none", icon_file: Optional[str] = None) -> bytes:
    """Вернуть PNG-байты QR-кода.

    Если задана иконка, используется максимальная коррекция ошибок,
    чтобы код читался несмотря на перекрытый центр. Битая или
    отсутствующая иконка не мешает генерации: код строится без неё.
    """
    with_icon = bool(icon_file) and os.path.isfile(icon_file)
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_H if with_icon else qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=BORDER_WIDTHS.get(border_style, BORDER_WIDTHS["none"]),
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white").get_image().convert("RGBA")
    if with_icon:
        try:
            img = _overlay_icon(img, icon_file)
        except (OSError, ValueError):
            logger.warning("QR icon %s could not be applied", icon_file, exc_info=True)

    buffer = io.BytesIO()
    img.convert("RGB").save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_uri(data: str, border_style: str = "none", icon_file: Optional[str] = None) -> str:
    png = render_qr_png(data, border_style=border_style, icon_file=icon_file)
    return "data:image/png;base64," + base64.b64encode(png).decode()
