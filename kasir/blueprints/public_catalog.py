"""Public storefront blueprint: open product browsing plus the owner's admin routes."""
from flask import Blueprint, request, g

from kasir.database import get_session
from kasir.middleware import require_login
from kasir.services import public_catalog_service
from kasir.utils.responses import success, json_body, int_arg

public_catalog_bp = Blueprint('public_catalog', __name__, url_prefix='/public')


@public_catalog_bp.route('/products', methods=['GET'])
def list_public_products():
    """Active products of every store; no login required."""
    result = public_catalog_service.list_public_products(
        get_session(),
        brand_id=int_arg('brand_id'),
        category_id=int_arg('category_id'),
        search=request.args.get('q'),
        sort=request.args.get('sort') or None,
        owner_id=int_arg('store_id'),
    )
    return success(result['products'], filters=result['filters'])


@public_catalog_bp.route('/products/<int:product_id>', methods=['GET'])
def public_product_detail(product_id):
    return success(public_catalog_service.get_public_product(get_session(), product_id))


# Owner administration

@public_catalog_bp.route('/admin/products', methods=['GET'])
@require_login
def list_admin_products():
    return success(public_catalog_service.list_admin_products(
        get_session(), g.user_id, sort=request.args.get('sort') or None))


@public_catalog_bp.route('/admin/products', methods=['POST'])
@require_login
def create_product():
    return success(public_catalog_service.create_product(get_session(), g.user_id, json_body()), 201)


@public_catalog_bp.route('/admin/products/<int:product_id>', methods=['GET'])
@require_login
def get_admin_product(product_id):
    return success(public_catalog_service.get_admin_product(get_session(), g.user_id, product_id).to_dict())


@public_catalog_bp.route('/admin/products/<int:product_id>', methods=['PUT'])
@require_login
def update_product(product_id):
    return success(public_catalog_service.update_product(get_session(), g.user_id, product_id, json_body()))


@public_catalog_bp.route('/admin/products/<int:product_id>/stock', methods=['PUT'])
@require_login
def set_stock(product_id):
    value = json_body().get('stock')
    return success(public_catalog_service.set_stock(get_session(), g.user_id, product_id, value))


@public_catalog_bp.route('/admin/products/<int:product_id>', methods=['DELETE'])
@require_login
def delete_product(product_id):
    public_catalog_service.delete_product(get_session(), g.user_id, product_id)
    return success({'id': product_id, 'message': 'Produk publik dihapus'})


@public_catalog_bp.route('/admin/brands', methods=['GET'])
@require_login
def list_brands():
    return success(public_catalog_service.list_brands(get_session(), g.user_id))


@public_catalog_bp.route('/admin/brands', methods=['POST'])
@require_login
def create_brand():
    body = json_body()
    return success(public_catalog_service.create_brand(
        get_session(), g.user_id, body.get('name'), body.get('description')), 201)


@public_catalog_bp.route('/admin/categories', methods=['GET'])
@require_login
def list_categories():
    return success(public_catalog_service.list_categories(get_session(), g.user_id))


@public_catalog_bp.route('/admin/categories', methods=['POST'])
@require_login
def create_category():
    body = json_body()
    return success(public_catalog_service.create_category(
        get_session(), g.user_id, body.get('name'), body.get('description')), 201)
