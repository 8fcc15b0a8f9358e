"""Finance blueprint: payment channels, balance adjustments and channel report."""
from flask import Blueprint, request, g

from kasir.database import get_session
from kasir.forms.pos_forms import BalanceAdjustForm, PaymentChannelForm, load_json_form
from kasir.middleware import require_login
from kasir.services import finance_service
from kasir.utils.responses import success, json_body, int_arg

finance_bp = Blueprint('finance', __name__, url_prefix='/finance')


@finance_bp.route('/channels', methods=['GET'])
@require_login
def list_channels():
    return success(finance_service.list_channels(get_session(), g.user_id))


@finance_bp.route('/channels', methods=['POST'])
@require_login
def create_channel():
    form = load_json_form(PaymentChannelForm, json_body())
    channel = finance_service.create_channel(
        get_session(), g.user_id,
        name=form.name.data,
        channel_type=form.type.data,
        initial_balance=form.initial_balance.data or 0,
        description=form.description.data or None,
    )
    return success(channel, 201)


@finance_bp.route('/channels/<int:channel_id>', methods=['PUT'])
@require_login
def update_channel(channel_id):
    return success(finance_service.update_channel(get_session(), g.user_id, channel_id, json_body()))


@finance_bp.route('/channels/<int:channel_id>', methods=['DELETE'])
@require_login
def delete_channel(channel_id):
    finance_service.delete_channel(get_session(), g.user_id, channel_id)
    return success({'id': channel_id, 'message': 'Channel dihapus'})


@finance_bp.route('/channels/<int:channel_id>/adjust', methods=['POST'])
@require_login
def adjust_balance(channel_id):
    form = load_json_form(BalanceAdjustForm, json_body())
    result = finance_service.adjust_balance(
        get_session(), g.user_id, channel_id, form.new_balance.data, reason=form.reason.data or None
    )
    return success(result)


@finance_bp.route('/channels/<int:channel_id>/transactions', methods=['GET'])
@require_login
def channel_transactions(channel_id):
    rows = finance_service.get_channel_transactions(
        get_session(), g.user_id, channel_id, limit=int_arg('limit', 50, minimum=1)
    )
    return success(rows)


@finance_bp.route('/report', methods=['GET'])
@require_login
def transaction_report():
    report = finance_service.get_transaction_report(
        get_session(), g.user_id,
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
    )
    return success(report)
