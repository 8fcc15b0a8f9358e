"""Reports blueprint: analytics, charts, best sellers and dashboard."""
from flask import Blueprint, request, g

from kasir.database import get_session
from kasir.exceptions import ValidationError
from kasir.middleware import require_login
from kasir.services import analytics_service, dashboard_service, report_service, top_sales_service
from kasir.utils.responses import success, int_arg

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


def _required_range():
    start_date = request.args.get('start_date')
    end_date = request.args.get('end_date')
    if not start_date or not end_date:
        raise ValidationError('Parameter start_date dan end_date wajib diisi')
    return start_date, end_date


@reports_bp.route('/analytics', methods=['GET'])
@require_login
def analytics():
    """Summary for ?period=today|yesterday|week|month|year|custom."""
    period = request.args.get('period', 'today')
    custom = (request.args.get('start_date'), request.args.get('end_date'))
    return success(analytics_service.get_sales_analytics(get_session(), g.user_id, period, custom))


@reports_bp.route('/performance', methods=['GET'])
@require_login
def performance():
    data = analytics_service.get_sales_performance(
        get_session(), g.user_id,
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
    )
    return success(data)


@reports_bp.route('/products/<int:product_id>', methods=['GET'])
@require_login
def product_metrics(product_id):
    data = analytics_service.get_product_sales_metrics(
        get_session(), g.user_id, product_id=product_id,
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
    )
    return success(data)


@reports_bp.route('/profit/monthly', methods=['GET'])
@require_login
def monthly_profit():
    return success(report_service.get_monthly_profit(get_session(), g.user_id, year=int_arg('year')))


@reports_bp.route('/profit/yearly', methods=['GET'])
@require_login
def yearly_profit():
    return success(report_service.get_yearly_profit(get_session(), g.user_id))


@reports_bp.route('/profit/range', methods=['GET'])
@require_login
def profit_by_range():
    start_date, end_date = _required_range()
    return success(report_service.get_profit_by_range(get_session(), g.user_id, start_date, end_date))


@reports_bp.route('/transactions/daily', methods=['GET'])
@require_login
def daily_transactions():
    data = report_service.get_daily_transactions(
        get_session(), g.user_id, year=int_arg('year'), month=int_arg('month')
    )
    return success(data)


@reports_bp.route('/transactions/monthly', methods=['GET'])
@require_login
def monthly_transactions():
    return success(report_service.get_monthly_transactions(get_session(), g.user_id, year=int_arg('year')))


@reports_bp.route('/transactions/yearly', methods=['GET'])
@require_login
def yearly_transactions():
    return success(report_service.get_yearly_transactions(get_session(), g.user_id))


@reports_bp.route('/top/<kind>', methods=['GET'])
@require_login
def top_list(kind):
    """Ranked list; kind is products, categories, brands or dates."""
    rows = top_sales_service.get_top(get_session(), g.user_id, kind, limit=int_arg('limit', minimum=1))
    return success(rows)


@reports_bp.route('/dashboard', methods=['GET'])
@require_login
def dashboard():
    return success(dashboard_service.get_dashboard_data(get_session(), g.user_id))


@reports_bp.route('/recent-sales', methods=['GET'])
@require_login
def recent_sales():
    return success(dashboard_service.get_recent_sales(
        get_session(), g.user_id, limit=int_arg('limit', minimum=1)
    ))
