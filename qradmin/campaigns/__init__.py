"""Blueprint кампаний.

Маршруты (все требуют входа):

- ``GET /api/campaigns/live`` — постраничный список с сортировкой и фильтрами;
- ``GET /api/campaigns/categories`` / ``GET /api/campaigns/users`` — значения фильтров;
- ``GET/PUT /api/campaigns/<id>``, ``POST /api/campaigns``;
- ``PATCH /api/campaigns/<id>/scan`` — ручное увеличение счётчика;
- ``GET /api/campaigns/<id>/analytics/<date>`` и ``/scans``;
- ``GET /api/campaigns/<id>/qr.png`` — изображение QR-кода;
- ``POST /api/upload/icon`` — загрузка иконки для QR-кода.
"""

from flask import Blueprint

bp = Blueprint("campaigns", __name__, url_prefix="/api")

from . import routes  # noqa: E402,F401
