"""
Sales analytics: period summaries, daily performance and per-product metrics.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from typing import Optional

from flask import current_app

from kasir.exceptions import ValidationError
from kasir.services.aggregation import (
    daily_performance, growth_rate, product_metrics, summarize_sales,
)
from kasir.services.cache_service import get_cache
from kasir.services.product_service import get_product
from kasir.services.sales_service import get_sales_in_range
from kasir.utils.date_ranges import (
    PERIODS, custom_range, parse_date, resolve_period, start_of_day,
)
from kasir.utils.formatters import money

logger = logging.getLogger(__name__)


def _jsonable(values: dict) -> dict:
    return {k: money(v) if isinstance(v, Decimal) else v for k, v in values.items()}


def get_sales_analytics(session, user_id: int, period: str = 'today', custom: Optional[tuple] = None,
                        now: Optional[datetime] = None) -> dict:
    """
    Totals for a named period plus growth against the equally long
    window right before it.
    """
    period = (period or 'today').lower()
    if period not in PERIODS:
        period = 'today'
    window = resolve_period(period, now=now, custom=custom)

    def load():
        sales = get_sales_in_range(session, user_id, window.start, window.end_exclusive)
        before = window.previous()
        previous_sales = get_sales_in_range(session, user_id, before.start, before.end)
        summary = summarize_sales(sales)
        previous = summarize_sales(previous_sales)
        data = _jsonable(summary)
        data.update({
            'growth': growth_rate(summary['total'], previous['total']),
            'previous_total': money(previous['total']),
            'period': period,
            'start_date': window.start.isoformat(),
            'end_date': window.end.isoformat(),
        })
        return data

    key = f"summary:{period}:{window.start.isoformat()}:{window.end.isoformat()}"
    return get_cache().memoize(user_id, 'analytics', key, load,
                               ttl=current_app.config.get('CACHE_ANALYTICS_TTL'))


def _resolve_days(start_date, end_date, default_days: int, now: Optional[datetime]):
    today = (now or datetime.now()).date()
    end = parse_date(end_date, 'tanggal akhir') if end_date else today
    start = parse_date(start_date, 'tanggal mulai') if start_date else end - timedelta(days=default_days - 1)
    if start > end:
        raise ValidationError('Tanggal mulai tidak boleh setelah tanggal akhir')
    return start, end


def get_sales_performance(session, user_id: int, start_date=None, end_date=None,
                          now: Optional[datetime] = None) -> dict:
    """
    Day-by-day totals with growth and trend versus the previous day.

    Defaults to the last ``PERFORMANCE_DEFAULT_DAYS`` days ending today.
    """
    default_days = current_app.config.get('PERFORMANCE_DEFAULT_DAYS', 10)
    start, end = _resolve_days(start_date, end_date, default_days, now)

    def load():
        sales = get_sales_in_range(session, user_id, start_of_day(start),
                                   start_of_day(end + timedelta(days=1)))
        series = daily_performance(sales, start, end)
        best = max(series, key=lambda d: d['total']) if series else None
        summary = summarize_sales(sales)
        return {
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
            'days': [_jsonable(day) for day in series],
            'summary': {
                'total': money(summary['total']),
                'profit': money(summary['profit']),
                'transactions': summary['transactions'],
                'best_day': best['date'] if best and best['total'] > 0 else None,
            },
        }

    key = f"performance:{start.isoformat()}:{end.isoformat()}"
    return get_cache().memoize(user_id, 'analytics', key, load,
                               ttl=current_app.config.get('CACHE_ANALYTICS_TTL'))


def get_product_sales_metrics(session, user_id: int, product_id: Optional[int] = None,
                              barcode: Optional[str] = None, name: Optional[str] = None,
                              start_date=None, end_date=None, now: Optional[datetime] = None) -> dict:
    """
    Sales of one product in a date range (default: last 30 days).

    The product is identified by id, or by barcode / exact name for lines
    recorded without a product reference.
    """
    if product_id is not None:
        product = get_product(session, user_id, product_id)
        target = SimpleNamespace(id=product.id, barcode=product.barcode, name=product.name)
    elif barcode or name:
        target = SimpleNamespace(id=None, barcode=barcode, name=name)
    else:
        raise ValidationError('Produk wajib dipilih')

    start, end = _resolve_days(start_date, end_date, 30, now)
    window = custom_range(start, end)
    sales = get_sales_in_range(session, user_id, window.start, window.end_exclusive)
    metrics = product_metrics(sales, target)

    return {
        'product': {'id': target.id, 'name': target.name, 'barcode': target.barcode},
        'start_date': start.isoformat(),
        'end_date': end.isoformat(),
        'total_sales': money(metrics['total_sales']),
        'total_qty': metrics['total_qty'],
        'daily': [_jsonable(day) for day in metrics['daily']],
        'best_day': _jsonable(metrics['best_day']) if metrics['best_day'] else None,
    }
