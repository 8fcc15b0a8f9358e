"""Sales blueprint: checkout, history, deletion and date-range report."""
from flask import Blueprint, request, g

from kasir.database import get_session
from kasir.exceptions import ValidationError
from kasir.middleware import require_login
from kasir.services import sales_service, sale_delete_service
from kasir.utils.responses import success, json_body, int_arg

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')


@sales_bp.route('', methods=['POST'])
@require_login
def record_sale():
    """
    Persist a checkout.

    Body: items[{product_id?, product_name, barcode?, price, cost_price, qty,
    token_code?}], payment_method, cash_amount?, payment_channel_id?,
    customer_name?, notes?
    """
    sale = sales_service.record_sale(get_session(), g.user_id, json_body())
    return success(sale, 201)


@sales_bp.route('', methods=['GET'])
@require_login
def sales_history():
    sales = sales_service.get_sales_history(
        get_session(), g.user_id,
        limit=int_arg('limit', 50, minimum=1),
        offset=int_arg('offset', 0, minimum=0),
    )
    return success(sales)


@sales_bp.route('/<int:sale_id>', methods=['GET'])
@require_login
def sale_detail(sale_id):
    return success(sales_service.get_sale(get_session(), g.user_id, sale_id).to_dict())


@sales_bp.route('/<int:sale_id>', methods=['DELETE'])
@require_login
def delete_sale(sale_id):
    return success(sale_delete_service.delete_sale(get_session(), g.user_id, sale_id))


@sales_bp.route('/items/<int:item_id>', methods=['DELETE'])
@require_login
def delete_sale_item(item_id):
    """Remove one line; 403 with reason ``item_delete_forbidden`` when not allowed."""
    return success(sale_delete_service.delete_sale_item(get_session(), g.user_id, item_id))


@sales_bp.route('/report', methods=['GET'])
@require_login
def sales_report():
    start_date = request.args.get('start_date')
    end_date = request.args.get('end_date')
    if not start_date or not end_date:
        raise ValidationError('Parameter start_date dan end_date wajib diisi')
    return success(sales_service.get_sales_report(get_session(), g.user_id, start_date, end_date))
