"""
Pure aggregation helpers for sales reporting.

Every function takes already-loaded Sale / SaleItem objects (or any object
with the same attributes) and never touches the database, so the report
services stay thin and these rules can be tested in isolation.
"""
from collections import OrderedDict, defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
import calendar

from kasir.models.product import split_barcodes
from kasir.utils.date_ranges import (
    MONTH_NAMES_SHORT, day_label, day_sequence, month_label, month_sequence,
)

ZERO = Decimal('0')

TREND_UP = 'up'
TREND_DOWN = 'down'
TREND_STABLE = 'stable'


def _dec(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def item_profit(item) -> Decimal:
    """Stored line profit, or (price - cost) * qty for rows that lack it."""
    if getattr(item, 'line_profit', None) is not None:
        return _dec(item.line_profit)
    return (_dec(item.price) - _dec(item.cost_price)) * int(item.qty or 0)


def sale_profit(sale) -> Decimal:
    """Profit of a sale: from its items when present, else the header value."""
    items = getattr(sale, 'items', None)
    if items:
        return sum((item_profit(item) for item in items), ZERO)
    return _dec(sale.profit)


def summarize_sales(sales: Iterable) -> Dict[str, Decimal]:
    """Total, profit, count, average, highest and lowest sale amount."""
    sales = list(sales)
    totals = [_dec(sale.total) for sale in sales]
    profit = sum((sale_profit(sale) for sale in sales), ZERO)
    count = len(totals)
    total = sum(totals, ZERO)
    return {
        'total': total,
        'profit': profit,
        'transactions': count,
        'average': (total / count).quantize(Decimal('0.01')) if count else ZERO,
        'highest': max(totals) if totals else ZERO,
        'lowest': min(totals) if totals else ZERO,
    }


def growth_rate(current, previous) -> float:
    """
    Percentage change from ``previous`` to ``current``.

    A zero baseline reports 100 when there is anything now and 0 otherwise.
    """
    current, previous = _dec(current), _dec(previous)
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round(float((current - previous) / previous * 100), 2)


def trend_for(growth: float) -> str:
    if growth > 0:
        return TREND_UP
    if growth < 0:
        return TREND_DOWN
    return TREND_STABLE


def group_by_day(sales: Iterable) -> Dict[date, list]:
    buckets = defaultdict(list)
    for sale in sales:
        buckets[sale.created_at.date()].append(sale)
    return buckets


def daily_performance(sales: Iterable, start: date, end: date) -> List[dict]:
    """
    One bucket per calendar day in ``start``..``end`` (empty days included).

    Growth and trend compare each day's sales total with the previous day;
    the first day has nothing to compare with and is reported as stable.
    """
    buckets = group_by_day(sales)
    series = []
    previous_total = None
    for day in day_sequence(start, end):
        day_sales = buckets.get(day, [])
        total = sum((_dec(s.total) for s in day_sales), ZERO)
        profit = sum((sale_profit(s) for s in day_sales), ZERO)
        if previous_total is None:
            growth, trend = 0.0, TREND_STABLE
        else:
            growth = growth_rate(total, previous_total)
            trend = trend_for(growth)
        series.append({
            'date': day.isoformat(),
            'label': day_label(day),
            'total': total,
            'profit': profit,
            'transactions': len(day_sales),
            'growth': growth,
            'trend': trend,
        })
        previous_total = total
    return series


def _metric(sale, metric: str) -> Decimal:
    if metric == 'profit':
        return sale_profit(sale)
    if metric == 'count':
        return Decimal(1)
    return _dec(sale.total)


def monthly_totals(sales: Iterable, year: int, metric: str = 'profit') -> List[Decimal]:
    """Twelve values, index ``i`` holds month ``i + 1`` of ``year``."""
    data = [ZERO] * 12
    for sale in sales:
        if sale.created_at.year == year:
            data[sale.created_at.month - 1] += _metric(sale, metric)
    return data


def yearly_totals(sales: Iterable, metric: str = 'profit') -> Tuple[List[str], List[Decimal]]:
    """Year labels in ascending order with their totals."""
    per_year = defaultdict(lambda: ZERO)
    for sale in sales:
        per_year[sale.created_at.year] += _metric(sale, metric)
    years = sorted(per_year)
    return [str(y) for y in years], [per_year[y] for y in years]


def month_range_totals(sales: Iterable, start: date, end: date,
                       metric: str = 'profit') -> Tuple[List[str], List[Decimal]]:
    """Contiguous months from ``start`` to ``end`` labelled like 'Jan 24'."""
    months = OrderedDict((key, ZERO) for key in month_sequence(start, end))
    for sale in sales:
        key = (sale.created_at.year, sale.created_at.month)
        if key in months:
            months[key] += _metric(sale, metric)
    labels = [month_label(y, m) for (y, m) in months]
    return labels, list(months.values())


def daily_counts(sales: Iterable, year: int, month: int) -> Tuple[List[str], List[int]]:
    """Transaction count per day of a month; labels are '1'..'N'."""
    last_day = calendar.monthrange(year, month)[1]
    data = [0] * last_day
    for sale in sales:
        moment = sale.created_at
        if moment.year == year and moment.month == month:
            data[moment.day - 1] += 1
    return [str(d) for d in range(1, last_day + 1)], data


def monthly_counts(sales: Iterable, year: int) -> Tuple[List[str], List[int]]:
    data = [0] * 12
    for sale in sales:
        if sale.created_at.year == year:
            data[sale.created_at.month - 1] += 1
    return list(MONTH_NAMES_SHORT), data


def yearly_counts(sales: Iterable) -> Tuple[List[str], List[int]]:
    labels, data = yearly_totals(sales, metric='count')
    return labels, [int(value) for value in data]


def item_matches_product(item, product) -> bool:
    """
    Does a sale line belong to ``product``?

    Lines recorded with a product reference match on it. Older lines fall
    back to the barcode snapshot, then to the exact product name.
    """
    if item.product_id is not None and product.id is not None:
        return item.product_id == product.id
    item_codes = split_barcodes(item.barcode)
    if item_codes:
        return bool(set(item_codes) & set(split_barcodes(product.barcode)))
    return item.product_name == product.name


def product_metrics(sales: Iterable, product) -> dict:
    """Amount, quantity, per-day series and best day for one product."""
    per_day = OrderedDict()
    total_sales = ZERO
    total_qty = 0
    for sale in sorted(sales, key=lambda s: s.created_at):
        for item in sale.items:
            if not item_matches_product(item, product):
                continue
            day = sale.created_at.date().isoformat()
            bucket = per_day.setdefault(day, {'date': day, 'qty': 0, 'total': ZERO})
            bucket['qty'] += int(item.qty)
            bucket['total'] += _dec(item.line_total)
            total_sales += _dec(item.line_total)
            total_qty += int(item.qty)

    best_day = None
    for bucket in per_day.values():
        if best_day is None or bucket['qty'] > best_day['qty']:
            best_day = bucket
    return {
        'total_sales': total_sales,
        'total_qty': total_qty,
        'daily': list(per_day.values()),
        'best_day': dict(best_day) if best_day else None,
    }


def rank(rows: List[dict], key: str, limit: Optional[int] = None) -> List[dict]:
    """Sort descending by ``key`` and number the rows from 1."""
    ordered = sorted(rows, key=lambda row: row[key], reverse=True)
    if limit is not None:
        ordered = ordered[:limit]
    return [dict(row, rank=index + 1) for index, row in enumerate(ordered)]
