"""Finance transaction model (payment channel ledger)."""
from datetime import datetime
from sqlalchemy import Column, String, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from kasir.database import Base, IdType
from kasir.utils.formatters import iso, money
import enum


class FinanceTransactionType(str, enum.Enum):
    """Finance transaction type."""
    INCOME = 'income'
    EXPENSE = 'expense'
    ADJUSTMENT_IN = 'adjustment_in'
    ADJUSTMENT_OUT = 'adjustment_out'


class FinanceReferenceType(str, enum.Enum):
    """What produced the transaction."""
    INITIAL = 'initial'
    SALE = 'sale'
    ADJUSTMENT = 'adjustment'


class FinanceTransaction(Base):
    """Balance movement on a payment channel."""

    __tablename__ = 'finance_transaction'

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    payment_channel_id = Column(IdType, ForeignKey('payment_channel.id', ondelete='CASCADE'), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    previous_balance = Column(Numeric(14, 2), nullable=False)
    new_balance = Column(Numeric(14, 2), nullable=False)
    description = Column(Text, nullable=True)
    reference_type = Column(String(20), nullable=True)
    reference_id = Column(IdType, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)

    payment_channel = relationship('PaymentChannel')

    def to_dict(self):
        return {
            'id': self.id,
            'payment_channel_id': self.payment_channel_id,
            'payment_channel': self.payment_channel.name if self.payment_channel else None,
            'type': self.type,
            'amount': money(self.amount),
            'previous_balance': money(self.previous_balance),
            'new_balance': money(self.new_balance),
            'description': self.description,
            'reference_type': self.reference_type,
            'reference_id': self.reference_id,
            'created_at': iso(self.created_at),
        }

    def __repr__(self):
        return f"<FinanceTransaction(id={self.id}, type={self.type}, amount={self.amount})>"
