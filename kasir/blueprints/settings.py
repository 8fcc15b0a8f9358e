"""Settings blueprint: receipt settings and custom invoice templates."""
from flask import Blueprint, g

from kasir.database import get_session
from kasir.middleware import require_login
from kasir.services import settings_service
from kasir.utils.responses import success, json_body

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


@settings_bp.route('/invoice', methods=['GET'])
@require_login
def get_invoice_settings():
    return success(settings_service.get_invoice_settings(get_session(), g.user_id))


@settings_bp.route('/invoice', methods=['PUT'])
@require_login
def update_invoice_settings():
    return success(settings_service.update_invoice_settings(get_session(), g.user_id, json_body()))


@settings_bp.route('/invoice/reset', methods=['POST'])
@require_login
def reset_invoice_settings():
    return success(settings_service.reset_invoice_settings(get_session(), g.user_id))


@settings_bp.route('/custom-invoices', methods=['GET'])
@require_login
def list_custom_invoices():
    return success(settings_service.list_custom_invoices(get_session(), g.user_id))


@settings_bp.route('/custom-invoices', methods=['POST'])
@require_login
def create_custom_invoice():
    return success(settings_service.create_custom_invoice(get_session(), g.user_id, json_body()), 201)


@settings_bp.route('/custom-invoices/<int:invoice_id>', methods=['PUT'])
@require_login
def update_custom_invoice(invoice_id):
    return success(settings_service.update_custom_invoice(get_session(), g.user_id, invoice_id, json_body()))


@settings_bp.route('/custom-invoices/<int:invoice_id>', methods=['DELETE'])
@require_login
def delete_custom_invoice(invoice_id):
    settings_service.delete_custom_invoice(get_session(), g.user_id, invoice_id)
    return success({'id': invoice_id, 'message': 'Template invoice dihapus'})
