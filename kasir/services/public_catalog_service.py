"""
Public storefront catalog.

Owners curate public products, brands and categories (owner-scoped admin
operations); anyone can browse active products without logging in.
"""
import logging
from typing import Optional

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.orm import joinedload

from kasir.exceptions import PosError, ValidationError, NotFoundError
from kasir.models import PublicBrand, PublicCategory, PublicProduct
from kasir.services.stock_service import parse_quantity
from kasir.utils.number_format import parse_money

logger = logging.getLogger(__name__)

PRICE_SORTS = ('price_asc', 'price_desc')
STOCK_SORTS = ('stock_asc', 'stock_desc')

TRUE_VALUES = ('1', 'true', 'yes', 'ya', 'on')
FALSE_VALUES = ('0', 'false', 'no', 'tidak', 'off', '')


def _as_bool(value, field: str = 'is_active') -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValidationError(f'Nilai {field} tidak valid')


def _clean_text(value) -> Optional[str]:
    text = str(value).strip() if value is not None else ''
    return text or None


def _clean_images(value) -> list:
    """Keep the first images up to the configured limit; blanks are dropped."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    urls = [str(url).strip() for url in value if url and str(url).strip()]
    return urls[:current_app.config.get('MAX_PRODUCT_IMAGES', 5)]


def _owned_reference(session, model, owner_id: int, ref_id, label: str) -> Optional[int]:
    if ref_id in (None, '', 0):
        return None
    try:
        ref_id = int(ref_id)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} tidak valid')
    exists = session.query(model.id).filter(model.id == ref_id, model.owner_id == owner_id).first()
    if not exists:
        raise NotFoundError(f'{label} tidak ditemukan')
    return ref_id


def _with_relations(query):
    return query.options(joinedload(PublicProduct.brand), joinedload(PublicProduct.category))


# Brands and categories

def list_brands(session, owner_id: int) -> list:
    rows = session.query(PublicBrand).filter(PublicBrand.owner_id == owner_id).order_by(PublicBrand.name).all()
    return [b.to_dict() for b in rows]


def create_brand(session, owner_id: int, name, description=None) -> dict:
    name = _clean_text(name)
    if not name:
        raise ValidationError('Nama brand wajib diisi')
    brand = PublicBrand(owner_id=owner_id, name=name, description=_clean_text(description))
    session.add(brand)
    session.commit()
    return brand.to_dict()


def list_categories(session, owner_id: int) -> list:
    rows = session.query(PublicCategory).filter(
        PublicCategory.owner_id == owner_id
    ).order_by(PublicCategory.name).all()
    return [c.to_dict() for c in rows]


def create_category(session, owner_id: int, name, description=None) -> dict:
    name = _clean_text(name)
    if not name:
        raise ValidationError('Nama kategori wajib diisi')
    category = PublicCategory(owner_id=owner_id, name=name, description=_clean_text(description))
    session.add(category)
    session.commit()
    return category.to_dict()


# Admin product operations

def list_admin_products(session, owner_id: int, sort: Optional[str] = None) -> list:
    """
    Every public product of the owner, active or not.

    ``sort`` may be ``stock_asc``/``stock_desc`` for the restock screen;
    otherwise newest first.
    """
    query = _with_relations(session.query(PublicProduct)).filter(PublicProduct.owner_id == owner_id)
    if sort == 'stock_asc':
        query = query.order_by(PublicProduct.stock.asc(), PublicProduct.id)
    elif sort == 'stock_desc':
        query = query.order_by(PublicProduct.stock.desc(), PublicProduct.id)
    elif sort:
        raise ValidationError(f'Urutan tidak dikenal: {sort}')
    else:
        query = query.order_by(PublicProduct.created_at.desc(), PublicProduct.id.desc())
    return [p.to_dict() for p in query.all()]


def get_admin_product(session, owner_id: int, product_id: int) -> PublicProduct:
    product = _with_relations(session.query(PublicProduct)).filter(
        PublicProduct.id == product_id,
        PublicProduct.owner_id == owner_id
    ).first()
    if not product:
        raise NotFoundError(f'Produk publik #{product_id} tidak ditemukan')
    return product


def create_product(session, owner_id: int, data: dict) -> dict:
    """
    Create a public product.

    Raises:
        ValidationError: missing title, bad price or stock
        NotFoundError: brand/category is not one of the owner's public ones
    """
    title = _clean_text(data.get('title'))
    if not title:
        raise ValidationError('Judul wajib diisi')
    price = parse_money(data.get('price', 0) or 0, 'Harga')
    stock = parse_quantity(data.get('stock', 0) or 0, 'stok', allow_zero=True)

    try:
        product = PublicProduct(
            owner_id=owner_id,
            title=title,
            price=price,
            stock=stock,
            description=_clean_text(data.get('description')),
            image_urls=_clean_images(data.get('image_urls')),
            brand_id=_owned_reference(session, PublicBrand, owner_id, data.get('brand_id'), 'Brand'),
            category_id=_owned_reference(session, PublicCategory, owner_id, data.get('category_id'), 'Kategori'),
            is_active=_as_bool(data['is_active']) if data.get('is_active') is not None else True,
        )
        session.add(product)
        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception("create public product failed")
        raise

    logger.info(f"Public product created: id={product.id} owner={owner_id}")
    return product.to_dict()


def update_product(session, owner_id: int, product_id: int, data: dict) -> dict:
    """Patch a public product; only keys present in ``data`` change."""
    try:
        product = get_admin_product(session, owner_id, product_id)

        if 'title' in data:
            title = _clean_text(data['title'])
            if not title:
                raise ValidationError('Judul wajib diisi')
            product.title = title
        if 'price' in data:
            product.price = parse_money(data['price'] or 0, 'Harga')
        if 'stock' in data:
            product.stock = parse_quantity(data['stock'] or 0, 'stok', allow_zero=True)
        if 'image_urls' in data:
            product.image_urls = _clean_images(data['image_urls'])
        if 'description' in data:
            product.description = _clean_text(data['description'])
        if 'brand_id' in data:
            product.brand_id = _owned_reference(session, PublicBrand, owner_id, data['brand_id'], 'Brand')
        if 'category_id' in data:
            product.category_id = _owned_reference(session, PublicCategory, owner_id,
                                                   data['category_id'], 'Kategori')
        if data.get('is_active') is not None:
            product.is_active = _as_bool(data['is_active'])

        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"update public product failed for {product_id}")
        raise

    session.refresh(product)
    return product.to_dict()


def set_stock(session, owner_id: int, product_id: int, value) -> dict:
    """Set the displayed stock of a public product."""
    return update_product(session, owner_id, product_id, {'stock': value})


def delete_product(session, owner_id: int, product_id: int) -> None:
    try:
        product = get_admin_product(session, owner_id, product_id)
        session.delete(product)
        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"delete public product failed for {product_id}")
        raise

    logger.info(f"Public product deleted: id={product_id} owner={owner_id}")


# Storefront (no login)

def list_public_products(session, brand_id: Optional[int] = None, category_id: Optional[int] = None,
                         search: Optional[str] = None, sort: Optional[str] = None,
                         owner_id: Optional[int] = None) -> dict:
    """
    Active public products with the brand/category filter options they use.

    Returns:
        dict with ``products`` and ``filters`` ({brands, categories}); the
        filter options come from the active products before brand/category
        filtering so a shopper can switch between them.
    """
    if sort and sort not in PRICE_SORTS:
        raise ValidationError(f'Urutan tidak dikenal: {sort}')

    query = _with_relations(session.query(PublicProduct)).filter(PublicProduct.is_active.is_(True))
    if owner_id:
        query = query.filter(PublicProduct.owner_id == owner_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(PublicProduct.title.ilike(pattern), PublicProduct.description.ilike(pattern)))
    rows = query.order_by(PublicProduct.created_at.desc(), PublicProduct.id.desc()).all()

    brands, categories = {}, {}
    for product in rows:
        if product.brand:
            brands.setdefault(product.brand.id, product.brand.name)
        if product.category:
            categories.setdefault(product.category.id, product.category.name)

    if brand_id:
        rows = [p for p in rows if p.brand_id == brand_id]
    if category_id:
        rows = [p for p in rows if p.category_id == category_id]
    if sort == 'price_asc':
        rows = sorted(rows, key=lambda p: p.price or 0)
    elif sort == 'price_desc':
        rows = sorted(rows, key=lambda p: p.price or 0, reverse=True)

    return {
        'products': [p.to_public_dict() for p in rows],
        'filters': {
            'brands': [{'id': k, 'name': v} for k, v in brands.items()],
            'categories': [{'id': k, 'name': v} for k, v in categories.items()],
        },
    }


def get_public_product(session, product_id: int) -> dict:
    """Storefront detail; inactive products are not shown."""
    product = _with_relations(session.query(PublicProduct)).filter(
        PublicProduct.id == product_id,
        PublicProduct.is_active.is_(True)
    ).first()
    if not product:
        raise NotFoundError('Produk tidak ditemukan')
    return product.to_public_dict()
