"""Маршруты аналитики.

Эндпоинты предоставляют агрегированную информацию о кампаниях и сканах.
Тяжёлая бизнес‑логика вынесена в :mod:`qradmin.services.analytics_service`.
"""

from io import BytesIO

from flask import jsonify, make_response

from . import bp
from ..helpers import require_admin, require_auth
from ..services import analytics_service


@bp.get('/stats/overall')
def stats_overall():
    require_auth()
    return jsonify(analytics_service.overall_stats())


@bp.get('/analytics/overall')
def analytics_overall():
    require_auth()
    return jsonify(analytics_service.analytics_overall())


@bp.get('/analytics/top-campaigns')
def top_campaigns():
    require_auth()
    return jsonify(analytics_service.top_campaigns())


@bp.get('/analytics/regions')
def regions():
    require_auth()
    return jsonify(analytics_service.region_stats())


@bp.get('/analytics/user-growth')
def user_growth():
    require_auth()
    return jsonify(analytics_service.user_growth())


@bp.get('/analytics/overall.xlsx')
def overall_xlsx():
    """Вернуть сводную аналитику в формате Excel (XLSX).

    Листы: общие показатели, топ кампаний, регионы, рост по месяцам.
    """
    require_auth()
    from openpyxl import Workbook

    overall = analytics_service.analytics_overall()

    wb = Workbook()
    ws = wb.active
    ws.title = 'Summary'
    ws.append(['Metric', 'Value'])
    ws.append(['Total campaigns', overall['totalCampaigns']])
    ws.append(['Active campaigns', overall['activeCampaigns']])
    ws.append(['Total scans', overall['totalScans']])
    ws.append(['Total users', overall['totalUsers']])
    ws.append(['Avg scans per campaign', overall['avgScansPerCampaign']])

    ws_top = wb.create_sheet(title='Top campaigns')
    ws_top.append(['Name', 'Category', 'Scans', 'Created'])
    for row in analytics_service.top_campaigns():
        ws_top.append([row['name'], row['category'], row['scanCount'], row['createdAt']])

    ws_regions = wb.create_sheet(title='Regions')
    ws_regions.append(['Region', 'Scans', 'Percent'])
    for row in analytics_service.region_stats():
        ws_regions.append([row['region'], row['scanCount'], row['percentage']])

    ws_growth = wb.create_sheet(title='Growth')
    ws_growth.append(['Month', 'New users', 'New campaigns'])
    for row in analytics_service.user_growth():
        ws_growth.append([row['month'], row['userCount'], row['campaignCount']])

    # Сохраняем файл в буфер
    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)

    resp = make_response(buf.getvalue())
    resp.headers['Content-Type'] = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    resp.headers['Content-Disposition'] = 'attachment; filename=analytics_overall.xlsx'
    resp.headers['Cache-Control'] = 'no-cache'
    return resp


@bp.post('/analytics/add-scan-events')
def add_scan_events():
    require_admin()
    result = analytics_service.add_new_scan_events()
    return jsonify({
        'success': True,
        'message': f"Added {result['added']} new scan events. Total scan events: {result['total']}",
        **result,
    })
