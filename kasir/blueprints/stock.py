"""Stock blueprint: restock, adjustments and the stock ledger."""
from flask import Blueprint, current_app, request, g

from kasir.database import get_session
from kasir.forms.pos_forms import StockAddForm, StockAdjustForm, load_json_form
from kasir.middleware import require_login
from kasir.services import stock_service
from kasir.utils.responses import success, json_body, int_arg

stock_bp = Blueprint('stock', __name__, url_prefix='/stock')


@stock_bp.route('/<int:product_id>/add', methods=['POST'])
@require_login
def add_stock(product_id):
    form = load_json_form(StockAddForm, json_body())
    result = stock_service.add_stock(
        get_session(), g.user_id, product_id, form.quantity.data,
        reason=form.reason.data or None, notes=form.notes.data or None,
    )
    return success(result)


@stock_bp.route('/<int:product_id>/adjust', methods=['POST'])
@require_login
def adjust_stock(product_id):
    form = load_json_form(StockAdjustForm, json_body())
    result = stock_service.adjust_stock(
        get_session(), g.user_id, product_id, form.value.data, mode=form.mode.data,
        reason=form.reason.data or None, notes=form.notes.data or None,
    )
    return success(result)


@stock_bp.route('/history', methods=['GET'])
@require_login
def stock_history():
    """
    Ledger entries newest first.

    Query: product_id, period (today|yesterday|week|month|year|custom|all),
    start_date/end_date for custom, limit.
    """
    period = request.args.get('period')
    custom = (request.args.get('start_date'), request.args.get('end_date'))
    limit = int_arg('limit', current_app.config.get('STOCK_HISTORY_DEFAULT_LIMIT', 50), minimum=1)
    entries = stock_service.get_stock_history(
        get_session(), g.user_id,
        product_id=int_arg('product_id'),
        limit=limit,
        period=period,
        custom=custom,
    )
    return success(entries)
