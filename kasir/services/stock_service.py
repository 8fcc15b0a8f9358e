"""
Stock ledger service.

Every change to ``Product.stock`` goes through ``record_stock_change`` while
the product row is locked (SELECT ... FOR UPDATE), so the stock value and
its ledger entry are always written together in one transaction. Movement
metrics are counted by the caller once that transaction has committed.
"""
import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.orm import joinedload

from kasir.exceptions import PosError, ValidationError, NotFoundError, InsufficientStockError
from kasir.blueprints.metrics import stock_movements_total
from kasir.models import Product, StockHistory, StockChangeType
from kasir.services.cache_service import invalidate_reports
from kasir.utils.date_ranges import resolve_period

logger = logging.getLogger(__name__)

ADJUST_MODES = ('set', 'add', 'subtract')

REASON_MANUAL_ADD = 'Penambahan stok manual'
REASON_ADJUSTMENT = 'Penyesuaian stok'
REASON_SALE = 'penjualan'
REASON_SALE_REVERSAL = 'Pembatalan penjualan'
REASON_INITIAL = 'Stok awal'


def parse_quantity(value, field: str = 'jumlah', allow_zero: bool = False) -> int:
    """Coerce a whole-number quantity, rejecting fractions, negatives and junk."""
    if isinstance(value, bool) or value is None or value == '':
        raise ValidationError(f'{field.capitalize()} wajib diisi')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field.capitalize()} harus berupa angka')
    if number != int(number):
        raise ValidationError(f'{field.capitalize()} harus bilangan bulat')
    quantity = int(number)
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise ValidationError(f'{field.capitalize()} harus lebih dari 0' if not allow_zero
                              else f'{field.capitalize()} tidak boleh negatif')
    return quantity


def resolve_adjustment_target(current: int, value: int, mode: str) -> int:
    """Absolute stock after an adjustment; ``subtract`` never goes below zero."""
    if mode == 'set':
        return value
    if mode == 'add':
        return current + value
    if mode == 'subtract':
        return max(0, current - value)
    raise ValidationError(f'Mode penyesuaian tidak dikenal: {mode}')


def lock_product(session, owner_id: int, product_id: int) -> Product:
    """Fetch an owner's product with a row lock held until commit/rollback."""
    product = session.query(Product).filter(
        Product.id == product_id,
        Product.owner_id == owner_id
    ).with_for_update().first()
    if not product:
        raise NotFoundError(f'Produk #{product_id} tidak ditemukan')
    return product


def record_stock_change(session, product: Product, user_id: int, change_type: StockChangeType,
                        quantity: int, reason: Optional[str] = None, notes: Optional[str] = None,
                        sale_id: Optional[int] = None) -> StockHistory:
    """
    Apply a stock change to a locked product and append its ledger entry.

    Does not commit; the caller owns the transaction.
    """
    change_type = StockChangeType(change_type)
    previous_stock = int(product.stock or 0)
    if change_type == StockChangeType.ADDITION:
        new_stock = previous_stock + quantity
    elif change_type == StockChangeType.REDUCTION:
        new_stock = previous_stock - quantity
    else:
        quantity, new_stock = 0, previous_stock

    if new_stock < 0:
        raise InsufficientStockError(product.name, quantity, previous_stock)

    product.stock = new_stock
    entry = StockHistory(
        product_id=product.id,
        user_id=user_id,
        type=change_type.value,
        quantity=quantity,
        previous_stock=previous_stock,
        new_stock=new_stock,
        reason=reason,
        notes=notes,
        sale_id=sale_id,
    )
    session.add(entry)
    return entry


def count_stock_movements(entries) -> None:
    """Count committed ledger entries; call only after the commit succeeds."""
    for entry in entries:
        if entry is not None:
            stock_movements_total.labels(type=entry.type).inc()


def _change_for_target(previous: int, target: int) -> Tuple[StockChangeType, int]:
    diff = target - previous
    if diff > 0:
        return StockChangeType.ADDITION, diff
    if diff < 0:
        return StockChangeType.REDUCTION, -diff
    return StockChangeType.ADJUSTMENT, 0


def set_stock_level(session, product: Product, user_id: int, target: int,
                    reason: Optional[str] = None, notes: Optional[str] = None) -> StockHistory:
    """Move a locked product to an absolute stock level through the ledger."""
    change_type, quantity = _change_for_target(int(product.stock or 0), target)
    return record_stock_change(session, product, user_id, change_type, quantity, reason, notes)


def add_stock(session, user_id: int, product_id: int, quantity, reason: Optional[str] = None,
              notes: Optional[str] = None) -> dict:
    """
    Add units to a product (restock).

    Returns:
        dict with product_id, previous_stock, new_stock, quantity

    Raises:
        ValidationError: quantity is not a whole number > 0
        NotFoundError: product does not belong to the user
    """
    quantity = parse_quantity(quantity)
    try:
        product = lock_product(session, user_id, product_id)
        entry = record_stock_change(
            session, product, user_id, StockChangeType.ADDITION, quantity,
            reason=reason or REASON_MANUAL_ADD, notes=notes,
        )
        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"add_stock failed for product {product_id}")
        raise

    count_stock_movements([entry])
    logger.info(f"Stock added: product={product_id} {entry.previous_stock}->{entry.new_stock}")
    invalidate_reports(user_id)
    return {
        'product_id': product_id,
        'previous_stock': entry.previous_stock,
        'new_stock': entry.new_stock,
        'quantity': entry.quantity,
        'history_id': entry.id,
    }


def adjust_stock(session, user_id: int, product_id: int, value, mode: str = 'set',
                 reason: Optional[str] = None, notes: Optional[str] = None) -> dict:
    """
    Adjust stock to ``value`` (set), by ``value`` (add) or down by ``value`` (subtract).

    The ledger type follows the sign of the resulting change.
    """
    mode = (mode or 'set').lower()
    if mode not in ADJUST_MODES:
        raise ValidationError(f'Mode penyesuaian tidak dikenal: {mode}')
    value = parse_quantity(value, field='nilai', allow_zero=True)

    try:
        product = lock_product(session, user_id, product_id)
        target = resolve_adjustment_target(int(product.stock or 0), value, mode)
        entry = set_stock_level(session, product, user_id, target,
                                reason=reason or REASON_ADJUSTMENT, notes=notes)
        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"adjust_stock failed for product {product_id}")
        raise

    count_stock_movements([entry])
    logger.info(f"Stock adjusted ({mode}): product={product_id} {entry.previous_stock}->{entry.new_stock}")
    invalidate_reports(user_id)
    return {
        'product_id': product_id,
        'previous_stock': entry.previous_stock,
        'new_stock': entry.new_stock,
        'quantity': entry.quantity,
        'type': entry.type,
        'history_id': entry.id,
    }


def reduce_stock_for_sale(session, product: Product, user_id: int, qty: int, sale_id: int) -> StockHistory:
    """Decrement a locked product for a sale line; refuses to oversell."""
    if qty > int(product.stock or 0):
        raise InsufficientStockError(product.name, qty, int(product.stock or 0))
    return record_stock_change(session, product, user_id, StockChangeType.REDUCTION, qty,
                               reason=REASON_SALE, sale_id=sale_id)


def restore_stock(session, product: Product, user_id: int, qty: int, sale_id: int) -> StockHistory:
    """Put back units of a deleted sale line."""
    return record_stock_change(session, product, user_id, StockChangeType.ADDITION, qty,
                               reason=REASON_SALE_REVERSAL, sale_id=sale_id)


def get_stock_history(session, user_id: int, product_id: Optional[int] = None,
                      limit: Optional[int] = 50, period: Optional[str] = None,
                      custom: Optional[tuple] = None, now: Optional[datetime] = None) -> list:
    """
    Ledger entries newest first, optionally for one product and one period.

    The period window is applied in the query, before the limit.
    """
    query = session.query(StockHistory).options(
        joinedload(StockHistory.product)
    ).filter(StockHistory.user_id == user_id)

    if product_id is not None:
        query = query.filter(StockHistory.product_id == product_id)

    if period and period != 'all':
        window = resolve_period(period, now=now, custom=custom)
        query = query.filter(
            StockHistory.created_at >= window.start,
            StockHistory.created_at < window.end_exclusive
        )

    query = query.order_by(StockHistory.created_at.desc(), StockHistory.id.desc())
    if limit:
        query = query.limit(limit)
    return [entry.to_dict() for entry in query.all()]
