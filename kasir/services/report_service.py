"""
Chart reports: profit and transaction counts bucketed by day, month or year.

Each report returns ``labels`` and ``data`` lists of equal length, ready to
feed a chart, plus a ``total`` over the whole window.
"""
from datetime import datetime
from typing import Optional

from kasir.exceptions import ValidationError
from kasir.models import Sale
from kasir.services.aggregation import (
    daily_counts, month_range_totals, monthly_counts, monthly_totals, yearly_counts, yearly_totals,
)
from kasir.services.sales_service import sales_query, get_sales_in_range
from kasir.utils.date_ranges import MONTH_NAMES_SHORT, custom_range, month_range, year_range
from kasir.utils.formatters import money

MIN_YEAR = 2000


def _validate_year(year) -> int:
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise ValidationError(f'Tahun tidak valid: {year!r}')
    if year < MIN_YEAR or year > 9998:
        raise ValidationError(f'Tahun tidak valid: {year}')
    return year


def _validate_month(month) -> int:
    try:
        month = int(month)
    except (TypeError, ValueError):
        raise ValidationError(f'Bulan tidak valid: {month!r}')
    if not 1 <= month <= 12:
        raise ValidationError(f'Bulan tidak valid: {month}')
    return month


def _all_sales(session, user_id: int):
    return sales_query(session, user_id).order_by(Sale.created_at.asc(), Sale.id.asc()).all()


def get_monthly_profit(session, user_id: int, year=None, now: Optional[datetime] = None) -> dict:
    """Profit for each month of ``year`` (default: current year)."""
    year = _validate_year(year if year is not None else (now or datetime.now()).year)
    window = year_range(year)
    sales = get_sales_in_range(session, user_id, window.start, window.end)
    data = monthly_totals(sales, year, metric='profit')
    return {
        'year': year,
        'labels': list(MONTH_NAMES_SHORT),
        'data': [money(v) for v in data],
        'total': money(sum(data)),
    }


def get_yearly_profit(session, user_id: int) -> dict:
    """Profit per year across the whole sales history."""
    labels, data = yearly_totals(_all_sales(session, user_id), metric='profit')
    return {'labels': labels, 'data': [money(v) for v in data], 'total': money(sum(data))}


def get_profit_by_range(session, user_id: int, start_date, end_date) -> dict:
    """Monthly profit for every month touched by ``start_date``..``end_date``."""
    window = custom_range(start_date, end_date)
    sales = get_sales_in_range(session, user_id, window.start, window.end_exclusive)
    labels, data = month_range_totals(sales, window.start.date(), window.end.date(), metric='profit')
    return {
        'start_date': window.start.date().isoformat(),
        'end_date': window.end.date().isoformat(),
        'labels': labels,
        'data': [money(v) for v in data],
        'total': money(sum(data)),
    }


def get_daily_transactions(session, user_id: int, year=None, month=None,
                           now: Optional[datetime] = None) -> dict:
    """Transaction count for each day of one month."""
    now = now or datetime.now()
    year = _validate_year(year if year is not None else now.year)
    month = _validate_month(month if month is not None else now.month)
    window = month_range(year, month)
    sales = get_sales_in_range(session, user_id, window.start, window.end)
    labels, data = daily_counts(sales, year, month)
    return {'year': year, 'month': month, 'labels': labels, 'data': data, 'total': sum(data)}


def get_monthly_transactions(session, user_id: int, year=None, now: Optional[datetime] = None) -> dict:
    year = _validate_year(year if year is not None else (now or datetime.now()).year)
    window = year_range(year)
    sales = get_sales_in_range(session, user_id, window.start, window.end)
    labels, data = monthly_counts(sales, year)
    return {'year': year, 'labels': labels, 'data': data, 'total': sum(data)}


def get_yearly_transactions(session, user_id: int) -> dict:
    labels, data = yearly_counts(_all_sales(session, user_id))
    return {'labels': labels, 'data': data, 'total': sum(data)}
