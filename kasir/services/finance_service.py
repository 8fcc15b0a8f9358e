"""
Payment channel service.
Channels hold a running balance; every balance change appends a
FinanceTransaction row carrying the before/after balance.
"""
import logging
from decimal import Decimal
from datetime import datetime
from typing import Optional

from sqlalchemy import func

from kasir.exceptions import PosError, BusinessLogicError, ValidationError, NotFoundError
from kasir.models import (
    PaymentChannel, ChannelType, FinanceTransaction, FinanceTransactionType, FinanceReferenceType,
)
from kasir.utils.date_ranges import custom_range
from kasir.utils.formatters import money, rupiah
from kasir.utils.number_format import parse_money

logger = logging.getLogger(__name__)

CHANNEL_TYPES = tuple(t.value for t in ChannelType)


def _get_channel(session, owner_id: int, channel_id: int, lock: bool = False,
                 active_only: bool = True) -> PaymentChannel:
    query = session.query(PaymentChannel).filter(
        PaymentChannel.id == channel_id,
        PaymentChannel.owner_id == owner_id
    )
    if active_only:
        query = query.filter(PaymentChannel.is_active.is_(True))
    if lock:
        query = query.with_for_update()
    channel = query.first()
    if not channel:
        raise NotFoundError('Channel pembayaran tidak ditemukan')
    return channel


def _append_transaction(session, channel: PaymentChannel, tx_type: FinanceTransactionType,
                        amount: Decimal, new_balance: Decimal, description: str,
                        reference_type: FinanceReferenceType, reference_id: Optional[int] = None):
    entry = FinanceTransaction(
        owner_id=channel.owner_id,
        payment_channel_id=channel.id,
        type=tx_type.value,
        amount=amount,
        previous_balance=channel.balance or Decimal('0'),
        new_balance=new_balance,
        description=description,
        reference_type=reference_type.value,
        reference_id=reference_id,
    )
    channel.balance = new_balance
    session.add(entry)
    return entry


def list_channels(session, owner_id: int) -> list:
    channels = session.query(PaymentChannel).filter(
        PaymentChannel.owner_id == owner_id,
        PaymentChannel.is_active.is_(True)
    ).order_by(PaymentChannel.created_at.asc(), PaymentChannel.id.asc()).all()
    return [c.to_dict() for c in channels]


def create_channel(session, owner_id: int, name: str, channel_type: str = 'digital',
                   initial_balance=0, description: Optional[str] = None) -> dict:
    """Create a channel; a positive opening balance is booked as 'Modal awal'."""
    name = (name or '').strip()
    if not name:
        raise ValidationError('Nama channel wajib diisi')
    channel_type = (channel_type or 'digital').lower()
    if channel_type not in CHANNEL_TYPES:
        raise ValidationError(f'Tipe channel tidak valid: {channel_type}')
    opening = parse_money(initial_balance or 0, "Saldo awal")

    try:
        channel = PaymentChannel(
            owner_id=owner_id,
            name=name,
            type=channel_type,
            balance=Decimal('0'),
            initial_balance=opening,
            description=description,
        )
        session.add(channel)
        session.flush()
        if opening > 0:
            _append_transaction(session, channel, FinanceTransactionType.INCOME, opening, opening,
                                'Modal awal', FinanceReferenceType.INITIAL)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Payment channel created: id={channel.id} owner={owner_id}")
    return channel.to_dict()


def update_channel(session, owner_id: int, channel_id: int, data: dict) -> dict:
    """Rename or retype a channel. Balances only change through transactions."""
    channel = _get_channel(session, owner_id, channel_id)
    if 'name' in data and data['name'] is not None:
        if not str(data['name']).strip():
            raise ValidationError('Nama channel wajib diisi')
        channel.name = str(data['name']).strip()
    if data.get('type'):
        if data['type'] not in CHANNEL_TYPES:
            raise ValidationError(f"Tipe channel tidak valid: {data['type']}")
        channel.type = data['type']
    if 'description' in data:
        channel.description = data['description']
    session.commit()
    return channel.to_dict()


def delete_channel(session, owner_id: int, channel_id: int) -> None:
    """Soft delete; refused while money is still on the channel."""
    channel = _get_channel(session, owner_id, channel_id)
    if (channel.balance or 0) > 0:
        raise BusinessLogicError(
            f'Channel {channel.name} masih memiliki saldo. Kosongkan saldo terlebih dahulu.'
        )
    channel.is_active = False
    session.commit()
    logger.info(f"Payment channel deactivated: id={channel_id}")


def process_payment(session, owner_id: int, channel_id: int, amount: Decimal, sale) -> PaymentChannel:
    """
    Book a sale payment on a channel inside the caller's transaction.

    Cash channels receive the money. Other channels are treated as paying
    out of their balance and must cover the amount.
    """
    channel = _get_channel(session, owner_id, channel_id, lock=True)
    balance = channel.balance or Decimal('0')

    if channel.is_cash:
        new_balance = balance + amount
        tx_type = FinanceTransactionType.INCOME
    else:
        if balance < amount:
            raise BusinessLogicError(
                f'Saldo {channel.name} tidak mencukupi. Saldo: {rupiah(balance)}, '
                f'Dibutuhkan: {rupiah(amount)}'
            )
        new_balance = balance - amount
        tx_type = FinanceTransactionType.EXPENSE

    _append_transaction(session, channel, tx_type, amount, new_balance,
                        f'Pembayaran penjualan {sale.no_invoice}',
                        FinanceReferenceType.SALE, sale.id)
    return channel


def _reversed_amount(session, owner_id: int, channel_id: int, sale_id: int) -> Decimal:
    """Sum of adjustment rows already written against a sale on one channel."""
    total = session.query(func.coalesce(func.sum(FinanceTransaction.amount), 0)).filter(
        FinanceTransaction.owner_id == owner_id,
        FinanceTransaction.payment_channel_id == channel_id,
        FinanceTransaction.reference_type == FinanceReferenceType.ADJUSTMENT.value,
        FinanceTransaction.reference_id == sale_id
    ).scalar()
    return Decimal(str(total or 0))


def reverse_sale_payments(session, owner_id: int, sale_id: int, amount: Optional[Decimal] = None) -> None:
    """
    Undo the channel effect of a sale (or of ``amount`` of it).

    Only the part of each payment not already reversed by earlier item
    deletions is undone. Appends opposite adjustment entries; history rows
    are never deleted.
    """
    payments = session.query(FinanceTransaction).filter(
        FinanceTransaction.owner_id == owner_id,
        FinanceTransaction.reference_type == FinanceReferenceType.SALE.value,
        FinanceTransaction.reference_id == sale_id
    ).all()
    for payment in payments:
        channel = _get_channel(session, owner_id, payment.payment_channel_id,
                               lock=True, active_only=False)
        still_open = payment.amount - _reversed_amount(session, owner_id, channel.id, sale_id)
        value = min(amount, still_open) if amount is not None else still_open
        if value <= 0:
            continue
        if payment.type == FinanceTransactionType.INCOME.value:
            tx_type = FinanceTransactionType.ADJUSTMENT_OUT
            new_balance = (channel.balance or 0) - value
        else:
            tx_type = FinanceTransactionType.ADJUSTMENT_IN
            new_balance = (channel.balance or 0) + value
        _append_transaction(session, channel, tx_type, value, new_balance,
                            f'Pembatalan penjualan #{sale_id}', FinanceReferenceType.ADJUSTMENT, sale_id)


def adjust_balance(session, owner_id: int, channel_id: int, new_balance, reason: Optional[str] = None) -> dict:
    """Set a channel to an absolute balance, logging the difference."""
    target = parse_money(new_balance, "Saldo")
    try:
        channel = _get_channel(session, owner_id, channel_id, lock=True)
        diff = target - (channel.balance or Decimal('0'))
        tx_type = (FinanceTransactionType.ADJUSTMENT_IN if diff >= 0
                   else FinanceTransactionType.ADJUSTMENT_OUT)
        entry = _append_transaction(session, channel, tx_type, abs(diff), target,
                                    reason or 'Penyesuaian saldo', FinanceReferenceType.ADJUSTMENT)
        session.commit()
    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"adjust_balance failed for channel {channel_id}")
        raise
    return {'channel': channel.to_dict(), 'transaction': entry.to_dict()}


def get_channel_transactions(session, owner_id: int, channel_id: int, limit: int = 50) -> list:
    _get_channel(session, owner_id, channel_id, active_only=False)
    rows = session.query(FinanceTransaction).filter(
        FinanceTransaction.owner_id == owner_id,
        FinanceTransaction.payment_channel_id == channel_id
    ).order_by(FinanceTransaction.created_at.desc(), FinanceTransaction.id.desc()).limit(limit).all()
    return [row.to_dict() for row in rows]


def get_transaction_report(session, owner_id: int, start_date=None, end_date=None) -> dict:
    """Sale payments grouped per channel, biggest channel first."""
    query = session.query(FinanceTransaction).filter(
        FinanceTransaction.owner_id == owner_id,
        FinanceTransaction.reference_type == FinanceReferenceType.SALE.value
    )
    if start_date and end_date:
        window = custom_range(start_date, end_date)
        query = query.filter(
            FinanceTransaction.created_at >= window.start,
            FinanceTransaction.created_at < window.end_exclusive
        )

    stats = {}
    total_amount = Decimal('0')
    rows = query.all()
    for row in rows:
        channel = row.payment_channel
        bucket = stats.setdefault(channel.id, {
            'channel_id': channel.id,
            'channel_name': channel.name,
            'channel_type': channel.type,
            'transaction_count': 0,
            'total_amount': Decimal('0'),
        })
        bucket['transaction_count'] += 1
        bucket['total_amount'] += row.amount
        total_amount += row.amount

    channel_data = sorted(stats.values(), key=lambda c: c['total_amount'], reverse=True)
    for bucket in channel_data:
        bucket['total_amount'] = money(bucket['total_amount'])
    return {
        'channel_data': channel_data,
        'total_transactions': len(rows),
        'total_amount': money(total_amount),
        'top_channel': channel_data[0] if channel_data else None,
        'generated_at': datetime.now().isoformat(),
    }
