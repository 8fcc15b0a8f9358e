"""Sale model."""
from datetime import datetime
from sqlalchemy import Column, String, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from kasir.database import Base, IdType
from kasir.utils.formatters import iso, money
import enum


class PaymentMethod(str, enum.Enum):
    """How the customer paid."""
    CASH = 'cash'
    DIGITAL = 'digital'
    BANK = 'bank'


def normalize_payment_method(value) -> str:
    """
    Normalize payment method value to its stored string.

    Raises:
        ValueError: If value is not a known method
    """
    if value is None:
        return PaymentMethod.CASH.value
    if isinstance(value, PaymentMethod):
        return value.value
    normalized = str(value).strip().lower()
    if normalized in {m.value for m in PaymentMethod}:
        return normalized
    raise ValueError(f"Metode pembayaran tidak valid: {value}")


class Sale(Base):
    """Sale (transaksi penjualan)."""

    __tablename__ = 'sale'

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    no_invoice = Column(String(40), nullable=False)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    profit = Column(Numeric(14, 2), nullable=False, default=0)
    payment_method = Column(String(20), nullable=False, default='cash')
    payment_channel_id = Column(IdType, ForeignKey('payment_channel.id', ondelete='SET NULL'), nullable=True)
    cash_amount = Column(Numeric(14, 2), nullable=True)
    change_amount = Column(Numeric(14, 2), nullable=True)
    customer_name = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)

    # Relationships
    items = relationship('SaleItem', back_populates='sale', cascade='all, delete-orphan',
                         order_by='SaleItem.id')
    payment_channel = relationship('PaymentChannel')

    def to_dict(self, include_items=True):
        data = {
            'id': self.id,
            'no_invoice': self.no_invoice,
            'total': money(self.total),
            'profit': money(self.profit),
            'payment_method': self.payment_method,
            'payment_channel_id': self.payment_channel_id,
            'payment_channel': self.payment_channel.name if self.payment_channel else None,
            'cash_amount': money(self.cash_amount) if self.cash_amount is not None else None,
            'change_amount': money(self.change_amount) if self.change_amount is not None else None,
            'customer_name': self.customer_name,
            'notes': self.notes,
            'created_at': iso(self.created_at),
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
            data['item_count'] = sum(item.qty for item in self.items)
        return data

    def __repr__(self):
        return f"<Sale(id={self.id}, no_invoice='{self.no_invoice}', total={self.total})>"
