"""
Analytics Routes
Business dashboard, sales, financial and vendor analytics plus raw data export
"""

from __future__ import annotations
from flask import Blueprint, current_app, jsonify, request

from utils.errors import StoreUnavailableError, ValidationError
from utils.serialization import safe_json

analytics_bp = Blueprint('analytics', __name__, url_prefix='/api/analytics')


def _get_analytics_service():
    """Get the analytics service created by the app factory"""
    service = current_app.config.get('analytics_service')
    if service is None:
        raise StoreUnavailableError()
    return service


def _ok(data: dict, message: str | None = None, status: int = 200):
    body = {'success': True, 'data': safe_json(data)}
    if message:
        body['message'] = message
    return jsonify(body), status


@analytics_bp.route('/dashboard', methods=['GET'])
def get_dashboard():
    """
    Business dashboard
    Returns revenue, order, customer and product summaries with
    month-over-month growth and customer retention.
    """
    return _ok(_get_analytics_service().dashboard())


@analytics_bp.route('/sales', methods=['GET'])
def get_sales_analytics():
    """
    Sales analytics
    Query params:
        - range: '7d', '30d', '90d', '1y' (default: '30d')
    """
    service = _get_analytics_service()
    return _ok(service.sales(request.args.get('range')))


@analytics_bp.route('/financial', methods=['GET'])
def get_financial_reports():
    """
    Financial reports grouped by day (1m), week (3m) or month (1y)
    Query params:
        - type: 'revenue' or 'profit' (default: 'revenue')
        - range: '1m', '3m', '1y' (default: '1y')
    """
    service = _get_analytics_service()
    return _ok(service.financial(request.args.get('type'), request.args.get('range')))


@analytics_bp.route('/vendors', methods=['GET'])
def get_vendor_analytics():
    """
    Vendor performance ranked by revenue
    Query params:
        - range: '1m', '3m', '6m' (default: '3m')
    """
    service = _get_analytics_service()
    return _ok(service.vendors(request.args.get('range')))


@analytics_bp.route('/export', methods=['POST'])
def export_analytics():
    """
    Export raw records
    Body: {type: orders|customers|products, format: json|csv, dateRange: {start, end}}
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    service = _get_analytics_service()

    result = service.export(data.get('type'), data.get('format'), data.get('dateRange'))
    print(f"[Analytics] Exported {result['recordCount']} {result['type']} records")
    return _ok(result, message=f"Successfully exported {result['recordCount']} {result['type']} records")
