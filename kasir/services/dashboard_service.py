"""
Dashboard service.
Provides today/month headline numbers, stock alerts and recent sales.
"""
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app
from sqlalchemy import func

from kasir.models import Product, Sale
from kasir.services.aggregation import summarize_sales
from kasir.services.cache_service import get_cache
from kasir.services.sales_service import get_sales_in_range, sales_query
from kasir.utils.date_ranges import day_range, month_range
from kasir.utils.formatters import money


def _previous_month(year: int, month: int):
    return (year - 1, 12) if month == 1 else (year, month - 1)


def get_low_stock_products(session, owner_id: int, threshold: Optional[int] = None) -> list:
    """Products at or under the threshold, emptiest first."""
    if threshold is None:
        threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 5)
    rows = session.query(Product.id, Product.name, Product.stock).filter(
        Product.owner_id == owner_id,
        Product.stock <= threshold
    ).order_by(Product.stock.asc(), Product.name.asc()).all()
    return [{'id': row.id, 'name': row.name, 'stock': row.stock} for row in rows]


def get_recent_sales(session, owner_id: int, limit: Optional[int] = None,
                     now: Optional[datetime] = None) -> list:
    """Today's latest sales, newest first."""
    if limit is None:
        limit = current_app.config.get('RECENT_SALES_LIMIT', 5)
    today = day_range((now or datetime.now()).date())
    sales = sales_query(session, owner_id).filter(
        Sale.created_at >= today.start,
        Sale.created_at < today.end
    ).order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
    return [sale.to_dict() for sale in sales]


def get_dashboard_data(session, owner_id: int, now: Optional[datetime] = None) -> dict:
    """
    Get all dashboard data for an owner.

    Returns:
        dict with keys:
            - today: total, profit, transactions, yesterday_total, yesterday_profit
            - month: total, profit, transactions, last_month_total, last_month_profit
            - products: total, low_stock (list of dicts)
            - recent_sales: today's latest sales
    """
    now = now or datetime.now()
    today = now.date()

    def load():
        windows = {
            'today': day_range(today),
            'yesterday': day_range(today - timedelta(days=1)),
            'month': month_range(today.year, today.month),
            'last_month': month_range(*_previous_month(today.year, today.month)),
        }
        summaries = {
            name: summarize_sales(get_sales_in_range(session, owner_id, window.start, window.end))
            for name, window in windows.items()
        }

        product_count = session.query(func.count(Product.id)).filter(
            Product.owner_id == owner_id
        ).scalar() or 0

        return {
            'today': {
                'total': money(summaries['today']['total']),
                'profit': money(summaries['today']['profit']),
                'transactions': summaries['today']['transactions'],
                'yesterday_total': money(summaries['yesterday']['total']),
                'yesterday_profit': money(summaries['yesterday']['profit']),
            },
            'month': {
                'total': money(summaries['month']['total']),
                'profit': money(summaries['month']['profit']),
                'transactions': summaries['month']['transactions'],
                'last_month_total': money(summaries['last_month']['total']),
                'last_month_profit': money(summaries['last_month']['profit']),
            },
            'products': {
                'total': product_count,
                'low_stock': get_low_stock_products(session, owner_id),
            },
            'recent_sales': get_recent_sales(session, owner_id, now=now),
        }

    return get_cache().memoize(owner_id, 'dashboard', f"summary:{today.isoformat()}", load,
                               ttl=current_app.config.get('CACHE_DEFAULT_TTL'))
