"""
Sales service with transactional logic.
Records a sale, its line items, stock decrements and the channel payment
as one unit of work.
"""
import logging
from decimal import Decimal
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import selectinload

from kasir.blueprints.metrics import sales_recorded_total
from kasir.exceptions import PosError, BusinessLogicError, ValidationError, NotFoundError
from kasir.models import Product, Sale, SaleItem, normalize_payment_method
from kasir.services import finance_service
from kasir.services.aggregation import summarize_sales
from kasir.services.cache_service import invalidate_reports
from kasir.services.stock_service import count_stock_movements, parse_quantity, reduce_stock_for_sale
from kasir.utils.date_ranges import custom_range
from kasir.utils.formatters import money, rupiah
from kasir.utils.number_format import parse_money

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def generate_invoice_number(moment: datetime) -> str:
    """Invoice numbers are minute-resolution timestamps, not unique keys."""
    return moment.strftime('INV-%Y%m%d-%H%M')


def build_sale_lines(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Validate raw cart items and compute line totals and profits.

    Each item needs ``product_name`` (or ``name``), ``qty`` > 0 and
    ``price``; ``cost_price``, ``product_id``, ``barcode`` and
    ``token_code`` are optional.
    """
    if not items:
        raise ValidationError('Keranjang kosong')
    if not isinstance(items, list):
        raise ValidationError('Format item tidak valid')

    lines = []
    for index, raw in enumerate(items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f'Item #{index} tidak valid')
        name = str(raw.get('product_name') or raw.get('name') or '').strip()
        if not name:
            raise ValidationError(f'Nama produk item #{index} wajib diisi')
        qty = parse_quantity(raw.get('qty'), field=f'jumlah item #{index}')
        price = parse_money(raw.get('price'), f'Harga item #{index}')
        cost_price = parse_money(raw.get('cost_price', raw.get('costPrice', 0)) or 0,
                                 f'Harga modal item #{index}')
        product_id = raw.get('product_id')
        if product_id not in (None, ''):
            try:
                product_id = int(product_id)
            except (TypeError, ValueError):
                raise ValidationError(f'ID produk item #{index} tidak valid')
        else:
            product_id = None

        lines.append({
            'product_id': product_id,
            'product_name': name,
            'barcode': (str(raw['barcode']).strip() or None) if raw.get('barcode') else None,
            'price': price,
            'cost_price': cost_price,
            'qty': qty,
            'line_total': (price * qty).quantize(CENT),
            'line_profit': ((price - cost_price) * qty).quantize(CENT),
            'token_code': raw.get('token_code') or None,
        })
    return lines


def _lock_products(session, owner_id: int, product_ids: List[int]) -> Dict[int, Product]:
    """Lock every product referenced by the cart, in id order."""
    if not product_ids:
        return {}
    products = session.query(Product).filter(
        Product.id.in_(product_ids),
        Product.owner_id == owner_id
    ).order_by(Product.id).with_for_update().all()
    found = {p.id: p for p in products}
    missing = [pid for pid in product_ids if pid not in found]
    if missing:
        raise NotFoundError(f'Produk tidak ditemukan: {", ".join(str(m) for m in missing)}')
    return found


def record_sale(session, user_id: int, payload: Dict[str, Any], now: Optional[datetime] = None) -> dict:
    """
    Persist a completed checkout.

    Steps:
    1. Validate items and compute totals on the server
    2. Validate payment (cash must cover the total)
    3. Lock referenced products
    4. Create Sale and SaleItems
    5. Decrement stock with ledger entries
    6. Book the payment on the chosen channel
    7. Commit once

    Any failure rolls back every step.
    """
    lines = build_sale_lines(payload.get('items'))
    total = sum((line['line_total'] for line in lines), Decimal('0')).quantize(CENT)
    profit = sum((line['line_profit'] for line in lines), Decimal('0')).quantize(CENT)

    try:
        payment_method = normalize_payment_method(payload.get('payment_method'))
    except ValueError as e:
        raise ValidationError(str(e))

    cash_amount = change_amount = None
    if payment_method == 'cash':
        raw_cash = payload.get('cash_amount')
        cash_amount = total if raw_cash in (None, '') else parse_money(raw_cash, 'Uang tunai')
        if cash_amount < total:
            raise BusinessLogicError(
                f'Uang tunai ({rupiah(cash_amount)}) kurang dari total ({rupiah(total)})'
            )
        change_amount = (cash_amount - total).quantize(CENT)

    channel_id = payload.get('payment_channel_id')
    if channel_id in (None, ''):
        channel_id = None
    else:
        try:
            channel_id = int(channel_id)
        except (TypeError, ValueError):
            raise ValidationError('Channel pembayaran tidak valid')
    moment = now or datetime.now()

    try:
        product_ids = sorted({line['product_id'] for line in lines if line['product_id']})
        products = _lock_products(session, user_id, product_ids)

        sale = Sale(
            user_id=user_id,
            no_invoice=generate_invoice_number(moment),
            total=total,
            profit=profit,
            payment_method=payment_method,
            cash_amount=cash_amount,
            change_amount=change_amount,
            customer_name=(payload.get('customer_name') or '').strip() or None,
            notes=payload.get('notes') or None,
            created_at=moment,
        )
        session.add(sale)
        session.flush()

        movements = []
        for line in lines:
            session.add(SaleItem(sale_id=sale.id, **line))
            if line['product_id']:
                movements.append(reduce_stock_for_sale(session, products[line['product_id']], user_id,
                                                       line['qty'], sale.id))

        if channel_id is not None:
            channel = finance_service.process_payment(session, user_id, channel_id, total, sale)
            sale.payment_channel_id = channel.id

        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception("record_sale failed")
        raise

    count_stock_movements(movements)
    sales_recorded_total.labels(payment_method=payment_method).inc()
    logger.info(f"Sale recorded: id={sale.id} invoice={sale.no_invoice} total={total} user={user_id}")
    invalidate_reports(user_id)
    return sale.to_dict()


def sales_query(session, user_id: int):
    return session.query(Sale).options(
        selectinload(Sale.items), selectinload(Sale.payment_channel)
    ).filter(Sale.user_id == user_id)


def get_sale(session, user_id: int, sale_id: int) -> Sale:
    sale = sales_query(session, user_id).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError(f'Transaksi #{sale_id} tidak ditemukan')
    return sale


def get_sales_history(session, user_id: int, limit: Optional[int] = 50, offset: int = 0) -> List[dict]:
    """Newest sales first, with their items."""
    query = sales_query(session, user_id).order_by(Sale.created_at.desc(), Sale.id.desc())
    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)
    return [sale.to_dict() for sale in query.all()]


def get_sales_in_range(session, user_id: int, start: datetime, end: datetime) -> List[Sale]:
    """Sales with ``start <= created_at < end`` in chronological order."""
    return sales_query(session, user_id).filter(
        Sale.created_at >= start,
        Sale.created_at < end
    ).order_by(Sale.created_at.asc(), Sale.id.asc()).all()


def get_sales_report(session, user_id: int, start_date, end_date) -> dict:
    """Sales between two calendar dates (inclusive) with summary totals."""
    window = custom_range(start_date, end_date)
    sales = get_sales_in_range(session, user_id, window.start, window.end_exclusive)
    summary = summarize_sales(sales)
    return {
        'range': window.to_dict(),
        'summary': {
            'transactions': summary['transactions'],
            'total': money(summary['total']),
            'profit': money(summary['profit']),
            'average': money(summary['average']),
            'items_sold': sum(item.qty for sale in sales for item in sale.items),
        },
        'sales': [sale.to_dict() for sale in reversed(sales)],
    }
