"""Ranked best-seller lists: products, categories, brands and dates."""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from flask import current_app
from sqlalchemy.orm import joinedload

from kasir.exceptions import ValidationError
from kasir.models import Product, Sale
from kasir.services.aggregation import rank, sale_profit
from kasir.services.sales_service import sales_query
from kasir.utils.formatters import money

TOP_KINDS = ('products', 'categories', 'brands', 'dates')

UNCATEGORIZED = 'Uncategorized'
NO_BRAND = 'No Brand'


def _limit(limit: Optional[int]) -> int:
    if limit is None:
        return current_app.config.get('TOP_LIST_DEFAULT_LIMIT', 20)
    return limit


def _items(session, user_id: int):
    for sale in sales_query(session, user_id).all():
        for item in sale.items:
            yield item


def _finish(stats: dict, key: str, limit: int) -> list:
    rows = rank(list(stats.values()), key, limit)
    for row in rows:
        row['total'] = money(row['total'])
    return rows


def get_top_products(session, user_id: int, limit: Optional[int] = None) -> list:
    """Best sellers by quantity; lines are grouped by product id, else by name."""
    stats = {}
    for item in _items(session, user_id):
        key = ('id', item.product_id) if item.product_id is not None else ('name', item.product_name)
        bucket = stats.setdefault(key, {
            'product_id': item.product_id,
            'name': item.product_name,
            'qty': 0,
            'total': Decimal('0'),
        })
        bucket['qty'] += int(item.qty)
        bucket['total'] += item.line_total or Decimal('0')
    return _finish(stats, 'qty', _limit(limit))


def _product_lookup(session, user_id: int):
    products = session.query(Product).options(
        joinedload(Product.category), joinedload(Product.brand)
    ).filter(Product.owner_id == user_id).all()
    by_id = {p.id: p for p in products}
    by_name = {}
    for p in products:
        by_name.setdefault(p.name, p)
    return by_id, by_name


def _top_by_group(session, user_id: int, limit: Optional[int], group: str, fallback: str) -> list:
    by_id, by_name = _product_lookup(session, user_id)
    stats = {}
    for item in _items(session, user_id):
        product = by_id.get(item.product_id) if item.product_id is not None else by_name.get(item.product_name)
        if product is None or getattr(product, f'{group}_id') is None:
            continue
        related = getattr(product, group)
        name = related.name if related else fallback
        bucket = stats.setdefault(name, {'name': name, 'qty': 0, 'total': Decimal('0')})
        bucket['qty'] += int(item.qty)
        bucket['total'] += item.line_total or Decimal('0')
    return _finish(stats, 'qty', _limit(limit))


def get_top_categories(session, user_id: int, limit: Optional[int] = None) -> list:
    """Units sold per category. Products without a category are left out."""
    return _top_by_group(session, user_id, limit, 'category', UNCATEGORIZED)


def get_top_brands(session, user_id: int, limit: Optional[int] = None) -> list:
    return _top_by_group(session, user_id, limit, 'brand', NO_BRAND)


def get_top_dates(session, user_id: int, limit: Optional[int] = None,
                  now: Optional[datetime] = None) -> list:
    """Most profitable days of the last year."""
    now = now or datetime.now()
    since = now.replace(year=now.year - 1) if not (now.month == 2 and now.day == 29) \
        else now - timedelta(days=366)
    sales = sales_query(session, user_id).filter(Sale.created_at >= since).all()

    stats = {}
    for sale in sales:
        day = sale.created_at.date().isoformat()
        bucket = stats.setdefault(day, {'name': day, 'total': Decimal('0'), 'count': 0})
        bucket['total'] += sale_profit(sale)
        bucket['count'] += 1
    return _finish(stats, 'total', _limit(limit))


def get_top(session, user_id: int, kind: str, limit: Optional[int] = None) -> list:
    loaders = {
        'products': get_top_products,
        'categories': get_top_categories,
        'brands': get_top_brands,
        'dates': get_top_dates,
    }
    if kind not in loaders:
        raise ValidationError(f'Jenis daftar tidak dikenal: {kind}')
    return loaders[kind](session, user_id, limit)
