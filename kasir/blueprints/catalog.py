"""Catalog blueprint: products, barcode lookup, categories and brands."""
from flask import Blueprint, request, g

from kasir.database import get_session
from kasir.exceptions import NotFoundError
from kasir.middleware import require_login
from kasir.services import product_service
from kasir.utils.responses import success, json_body, int_arg

catalog_bp = Blueprint('catalog', __name__)


@catalog_bp.route('/products', methods=['GET'])
@require_login
def list_products():
    """Product list; ``degraded`` is true when the database could not be read."""
    products, degraded = product_service.list_products(
        get_session(), g.user_id,
        search=request.args.get('q') or request.args.get('search'),
        category_id=int_arg('category_id'),
    )
    return success(products, degraded=degraded)


@catalog_bp.route('/products', methods=['POST'])
@require_login
def create_product():
    return success(product_service.create_product(get_session(), g.user_id, json_body()), 201)


@catalog_bp.route('/products/<int:product_id>', methods=['GET'])
@require_login
def get_product(product_id):
    return success(product_service.get_product(get_session(), g.user_id, product_id).to_dict())


@catalog_bp.route('/products/<int:product_id>', methods=['PUT'])
@require_login
def update_product(product_id):
    return success(product_service.update_product(get_session(), g.user_id, product_id, json_body()))


@catalog_bp.route('/products/<int:product_id>', methods=['DELETE'])
@require_login
def delete_product(product_id):
    product_service.delete_product(get_session(), g.user_id, product_id)
    return success({'id': product_id, 'message': 'Produk dihapus'})


@catalog_bp.route('/products/barcode/<code>', methods=['GET'])
@require_login
def product_by_barcode(code):
    """Scanner lookup."""
    product = product_service.find_by_barcode(get_session(), g.user_id, code)
    if not product:
        raise NotFoundError(f'Produk dengan barcode {code} tidak ditemukan')
    return success(product.to_dict())


@catalog_bp.route('/categories', methods=['GET'])
@require_login
def list_categories():
    return success(product_service.list_categories(get_session(), g.user_id))


@catalog_bp.route('/categories', methods=['POST'])
@require_login
def create_category():
    name = json_body().get('name')
    return success(product_service.create_category(get_session(), g.user_id, name), 201)


@catalog_bp.route('/brands', methods=['GET'])
@require_login
def list_brands():
    return success(product_service.list_brands(get_session(), g.user_id))


@catalog_bp.route('/brands', methods=['POST'])
@require_login
def create_brand():
    name = json_body().get('name')
    return success(product_service.create_brand(get_session(), g.user_id, name), 201)
