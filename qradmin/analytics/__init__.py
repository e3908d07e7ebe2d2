"""Blueprint для аналитики.

Маршруты:

- ``GET /api/stats/overall`` — счётчики для дашборда;
- ``GET /api/analytics/overall`` / ``top-campaigns`` / ``regions`` / ``user-growth``;
- ``GET /api/analytics/overall.xlsx`` — выгрузка в Excel;
- ``POST /api/analytics/add-scan-events`` — служебный (только админ).
"""

from flask import Blueprint

# Blueprint `analytics` регистрируется в qradmin/__init__.py
bp = Blueprint('analytics', __name__, url_prefix='/api')

from . import routes  # noqa: E402,F401
