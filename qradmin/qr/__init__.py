"""Публичные страницы QR-кодов (без авторизации).

Маршруты:

- ``GET /qrcode/<id>`` — сюда ведёт QR-код: фиксирует скан и
  перенаправляет на целевой адрес кампании;
- ``GET /qr-view/<id>`` — страница, которой можно поделиться;
- ``GET /uploads/<file>`` — загруженные иконки.
"""

from flask import Blueprint

bp = Blueprint("qr", __name__)

from . import routes  # noqa: E402,F401
