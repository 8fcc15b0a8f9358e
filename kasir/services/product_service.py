"""Product catalog service: products, categories and brands (owner-scoped)."""
import logging
from typing import Optional, Tuple

from flask import current_app
from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from kasir.exceptions import PosError, ValidationError, NotFoundError
from kasir.models import Product, Category, Brand, StockHistory, SaleItem, StockChangeType, split_barcodes
from kasir.services.cache_service import invalidate_reports
from kasir.services.stock_service import (
    REASON_INITIAL, count_stock_movements, lock_product, parse_quantity, record_stock_change, set_stock_level,
)
from kasir.utils.number_format import parse_money

logger = logging.getLogger(__name__)

REASON_PRODUCT_EDIT = 'Edit produk'


def list_products(session, owner_id: int, search: Optional[str] = None,
                  category_id: Optional[int] = None) -> Tuple[list, bool]:
    """
    Products newest first, optionally filtered by name/barcode substring.

    Returns:
        (products, error_flag): on database failure an empty list and True,
        so list screens can render an empty state instead of failing.
    """
    try:
        query = session.query(Product).options(
            joinedload(Product.category), joinedload(Product.brand)
        ).filter(Product.owner_id == owner_id)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.barcode.ilike(pattern)))
        if category_id:
            query = query.filter(Product.category_id == category_id)

        products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
        return [p.to_dict() for p in products], False
    except SQLAlchemyError as e:
        session.rollback()
        current_app.logger.error(f"Error listing products for owner {owner_id}: {e}")
        return [], True


def get_product(session, owner_id: int, product_id: int) -> Product:
    product = session.query(Product).filter(
        Product.id == product_id,
        Product.owner_id == owner_id
    ).first()
    if not product:
        raise NotFoundError(f'Produk #{product_id} tidak ditemukan')
    return product


def find_by_barcode(session, owner_id: int, code: str) -> Optional[Product]:
    """
    Exact barcode lookup.

    Barcodes are stored comma-joined, so the substring match in SQL is
    narrowed to an exact match on the split list.
    """
    clean = (code or '').strip()
    if not clean:
        return None
    candidates = session.query(Product).filter(
        Product.owner_id == owner_id,
        Product.barcode.ilike(f"%{clean}%")
    ).order_by(Product.id).all()
    for product in candidates:
        if clean in product.barcodes:
            return product
    return None


def _check_reference(session, model, owner_id, ref_id, label):
    if ref_id in (None, ''):
        return None
    try:
        ref_id = int(ref_id)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} tidak valid')
    exists = session.query(model.id).filter(model.id == ref_id, model.owner_id == owner_id).first()
    if not exists:
        raise NotFoundError(f'{label} tidak ditemukan')
    return ref_id


def _clean_images(value) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    urls = [str(url).strip() for url in value if url and str(url).strip()]
    max_images = current_app.config.get('MAX_PRODUCT_IMAGES', 5)
    if len(urls) > max_images:
        raise ValidationError(f'Maksimal {max_images} gambar per produk')
    return urls


def _check_barcodes_free(session, owner_id: int, codes: list, exclude_id: Optional[int] = None):
    for code in codes:
        existing = find_by_barcode(session, owner_id, code)
        if existing and existing.id != exclude_id:
            raise ValidationError(f'Barcode {code} sudah dipakai oleh produk "{existing.name}"')


def create_product(session, owner_id: int, data: dict) -> dict:
    """
    Create a product. Opening stock is booked through the stock ledger.
    """
    name = str(data.get('name') or '').strip()
    if not name:
        raise ValidationError('Nama produk wajib diisi')
    codes = split_barcodes(data.get('barcodes', data.get('barcode')))
    price = parse_money(data.get('price', 0) or 0, 'Harga jual')
    cost_price = parse_money(data.get('cost_price', 0) or 0, 'Harga modal')
    opening_stock = parse_quantity(data.get('stock', 0) or 0, 'stok', allow_zero=True)
    images = _clean_images(data.get('image_urls'))

    try:
        _check_barcodes_free(session, owner_id, codes)
        product = Product(
            owner_id=owner_id,
            name=name,
            price=price,
            cost_price=cost_price,
            stock=0,
            category_id=_check_reference(session, Category, owner_id, data.get('category_id'), 'Kategori'),
            brand_id=_check_reference(session, Brand, owner_id, data.get('brand_id'), 'Merek'),
            image_urls=images,
        )
        product.barcodes = codes
        session.add(product)
        session.flush()
        movements = []
        if opening_stock > 0:
            movements.append(record_stock_change(session, product, owner_id, StockChangeType.ADDITION,
                                                 opening_stock, reason=REASON_INITIAL))
        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception("create_product failed")
        raise

    count_stock_movements(movements)
    logger.info(f"Product created: id={product.id} owner={owner_id}")
    invalidate_reports(owner_id)
    return product.to_dict()


def update_product(session, owner_id: int, product_id: int, data: dict) -> dict:
    """
    Patch a product. Only keys present in ``data`` change; a new ``stock``
    value is applied as a ledger adjustment.
    """
    try:
        product = lock_product(session, owner_id, product_id)
        movements = []

        if 'name' in data and data['name'] is not None:
            name = str(data['name']).strip()
            if not name:
                raise ValidationError('Nama produk wajib diisi')
            product.name = name
        if 'barcodes' in data or 'barcode' in data:
            codes = split_barcodes(data.get('barcodes', data.get('barcode')))
            _check_barcodes_free(session, owner_id, codes, exclude_id=product.id)
            product.barcodes = codes
        if data.get('price') is not None:
            product.price = parse_money(data['price'], 'Harga jual')
        if data.get('cost_price') is not None:
            product.cost_price = parse_money(data['cost_price'], 'Harga modal')
        if 'category_id' in data:
            product.category_id = _check_reference(session, Category, owner_id, data['category_id'], 'Kategori')
        if 'brand_id' in data:
            product.brand_id = _check_reference(session, Brand, owner_id, data['brand_id'], 'Merek')
        if data.get('image_urls') is not None:
            product.image_urls = _clean_images(data['image_urls'])
        if data.get('stock') is not None:
            target = parse_quantity(data['stock'], 'stok', allow_zero=True)
            if target != product.stock:
                movements.append(set_stock_level(session, product, owner_id, target, reason=REASON_PRODUCT_EDIT))

        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"update_product failed for product {product_id}")
        raise

    count_stock_movements(movements)
    invalidate_reports(owner_id)
    return product.to_dict()


def delete_product(session, owner_id: int, product_id: int) -> None:
    """
    Delete a product. Stock history and sale lines keep their rows with the
    product reference cleared.
    """
    try:
        product = lock_product(session, owner_id, product_id)
        session.execute(
            update(StockHistory).where(StockHistory.product_id == product.id).values(product_id=None)
        )
        session.execute(
            update(SaleItem).where(SaleItem.product_id == product.id).values(product_id=None)
        )
        session.delete(product)
        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"delete_product failed for product {product_id}")
        raise

    logger.info(f"Product deleted: id={product_id} owner={owner_id}")
    invalidate_reports(owner_id)


def list_categories(session, owner_id: int) -> list:
    rows = session.query(Category).filter(Category.owner_id == owner_id).order_by(Category.name).all()
    return [c.to_dict() for c in rows]


def create_category(session, owner_id: int, name: str) -> dict:
    name = (name or '').strip()
    if not name:
        raise ValidationError('Nama kategori wajib diisi')
    category = Category(owner_id=owner_id, name=name)
    session.add(category)
    session.commit()
    return category.to_dict()


def list_brands(session, owner_id: int) -> list:
    rows = session.query(Brand).filter(Brand.owner_id == owner_id).order_by(Brand.name).all()
    return [b.to_dict() for b in rows]


def create_brand(session, owner_id: int, name: str) -> dict:
    name = (name or '').strip()
    if not name:
        raise ValidationError('Nama merek wajib diisi')
    brand = Brand(owner_id=owner_id, name=name)
    session.add(brand)
    session.commit()
    return brand.to_dict()
