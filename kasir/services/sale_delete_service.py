"""Service for deleting sales and sale items with stock reversal."""
import logging
from decimal import Decimal
from typing import Optional

from flask import current_app

from kasir.exceptions import PosError, NotFoundError, SaleItemDeleteForbiddenError
from kasir.models import Product, Sale, SaleItem
from kasir.services import finance_service
from kasir.services.cache_service import invalidate_reports
from kasir.services.stock_service import count_stock_movements, restore_stock
from kasir.utils.formatters import money

logger = logging.getLogger(__name__)


def _lock_sale(session, user_id: int, sale_id: int) -> Sale:
    sale = session.query(Sale).filter(
        Sale.id == sale_id,
        Sale.user_id == user_id
    ).with_for_update().first()
    if not sale:
        raise NotFoundError(f'Transaksi #{sale_id} tidak ditemukan')
    return sale


def _restore_item_stock(session, user_id: int, item: SaleItem, movements: list) -> Optional[dict]:
    """Return units of a line to its product, when the product still exists."""
    if item.product_id is None:
        return None
    product = session.query(Product).filter(
        Product.id == item.product_id,
        Product.owner_id == user_id
    ).with_for_update().first()
    if not product:
        return None
    entry = restore_stock(session, product, user_id, int(item.qty), item.sale_id)
    movements.append(entry)
    return {
        'product_id': product.id,
        'product_name': product.name,
        'qty': int(item.qty),
        'previous_stock': entry.previous_stock,
        'new_stock': entry.new_stock,
    }


def delete_sale_item(session, user_id: int, item_id: int, allow_item_delete: Optional[bool] = None) -> dict:
    """
    Remove one line from a sale.

    Steps:
    1. Find the item through its parent sale (owner scoped)
    2. Enforce the single-item deletion permission
    3. Restore product stock and reverse the channel payment share
    4. Delete the item and decrement the sale total (floored at 0) and profit
    5. Delete the sale when no items remain
    6. Commit

    Raises:
        NotFoundError: item missing or belongs to another owner
        SaleItemDeleteForbiddenError: deployment forbids removing one line
            of a multi-line sale; the caller should offer deleting the sale
    """
    if allow_item_delete is None:
        allow_item_delete = current_app.config.get('SALE_ITEM_DELETE_ENABLED', True)

    try:
        # Step 1: Item and parent sale
        item = session.query(SaleItem).join(Sale, Sale.id == SaleItem.sale_id).filter(
            SaleItem.id == item_id,
            Sale.user_id == user_id
        ).first()
        if not item:
            raise NotFoundError(f'Item #{item_id} tidak ditemukan')
        sale = _lock_sale(session, user_id, item.sale_id)

        # Step 2: Permission
        item_count = session.query(SaleItem).filter(SaleItem.sale_id == sale.id).count()
        if not allow_item_delete and item_count > 1:
            raise SaleItemDeleteForbiddenError(sale.id)

        # Step 3: Stock and payment reversal
        movements = []
        restored = _restore_item_stock(session, user_id, item, movements)
        if sale.payment_channel_id is not None:
            finance_service.reverse_sale_payments(session, user_id, sale.id, amount=item.line_total)

        # Step 4: Item and totals
        sale.total = max(Decimal('0'), (sale.total or 0) - item.line_total)
        sale.profit = (sale.profit or 0) - item.line_profit
        session.delete(item)
        remaining = item_count - 1

        # Step 5: Empty sale
        sale_id = sale.id
        sale_deleted = remaining == 0
        if sale_deleted:
            session.delete(sale)

        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"delete_sale_item failed for item {item_id}")
        raise

    count_stock_movements(movements)
    logger.info(f"Sale item deleted: item={item_id} sale={sale_id} sale_deleted={sale_deleted}")
    invalidate_reports(user_id)
    return {
        'sale_id': sale_id,
        'sale_deleted': sale_deleted,
        'remaining_items': remaining,
        'total': 0.0 if sale_deleted else money(sale.total),
        'profit': 0.0 if sale_deleted else money(sale.profit),
        'restored_stock': restored,
    }


def delete_sale(session, user_id: int, sale_id: int) -> dict:
    """
    Delete a whole sale, restoring stock for every linked line.

    Stock and finance ledgers keep their rows; reversals are appended.
    """
    try:
        sale = _lock_sale(session, user_id, sale_id)
        items = session.query(SaleItem).filter(SaleItem.sale_id == sale.id).all()

        restored, movements = [], []
        for item in items:
            result = _restore_item_stock(session, user_id, item, movements)
            if result:
                restored.append(result)

        if sale.payment_channel_id is not None:
            finance_service.reverse_sale_payments(session, user_id, sale.id)

        invoice = sale.no_invoice
        session.delete(sale)
        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"delete_sale failed for sale {sale_id}")
        raise

    count_stock_movements(movements)
    logger.info(f"Sale deleted: id={sale_id} invoice={invoice} restored={len(restored)}")
    invalidate_reports(user_id)
    return {
        'sale_id': sale_id,
        'no_invoice': invoice,
        'message': f'Transaksi {invoice} dihapus dan stok dikembalikan',
        'restored_stock': restored,
    }
