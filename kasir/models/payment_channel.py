"""Payment channel model (cash drawer, e-wallet, bank account)."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, Text, ForeignKey
from kasir.database import Base, IdType
from kasir.utils.formatters import iso, money
import enum


class ChannelType(str, enum.Enum):
    """Payment channel type."""
    CASH = 'cash'
    DIGITAL = 'digital'
    BANK = 'bank'


class PaymentChannel(Base):
    """A place money lands in; carries a running balance."""

    __tablename__ = 'payment_channel'

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    type = Column(String(20), nullable=False, default='cash')
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    initial_balance = Column(Numeric(14, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    @property
    def is_cash(self):
        return self.type == ChannelType.CASH.value

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'balance': money(self.balance),
            'initial_balance': money(self.initial_balance),
            'description': self.description,
            'is_active': self.is_active,
            'created_at': iso(self.created_at),
        }

    def __repr__(self):
        return f"<PaymentChannel(id={self.id}, name='{self.name}', balance={self.balance})>"
