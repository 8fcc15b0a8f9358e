"""Stock history model (append-only stock ledger)."""
from datetime import datetime
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from kasir.database import Base, IdType
from kasir.utils.formatters import iso
import enum


class StockChangeType(str, enum.Enum):
    """Direction of a stock change."""
    ADDITION = 'addition'
    REDUCTION = 'reduction'
    ADJUSTMENT = 'adjustment'


class StockHistory(Base):
    """
    One stock change.

    ``quantity`` is the magnitude; the direction comes from ``type`` so that
    ``new_stock == previous_stock + signed_quantity`` always holds.
    """

    __tablename__ = 'stock_history'

    id = Column(IdType, primary_key=True, autoincrement=True)
    product_id = Column(IdType, ForeignKey('product.id', ondelete='SET NULL'), nullable=True, index=True)
    user_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    sale_id = Column(IdType, nullable=True)  # set when written by a sale or its reversal
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)

    product = relationship('Product')

    @property
    def signed_quantity(self):
        if self.type == StockChangeType.ADDITION.value:
            return self.quantity
        if self.type == StockChangeType.REDUCTION.value:
            return -self.quantity
        return 0

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product.name if self.product else None,
            'barcode': self.product.barcode if self.product else None,
            'type': self.type,
            'quantity': self.quantity,
            'signed_quantity': self.signed_quantity,
            'previous_stock': self.previous_stock,
            'new_stock': self.new_stock,
            'reason': self.reason,
            'notes': self.notes,
            'sale_id': self.sale_id,
            'created_at': iso(self.created_at),
        }

    def __repr__(self):
        return (
            f"<StockHistory(id={self.id}, product_id={self.product_id}, type={self.type}, "
            f"{self.previous_stock}->{self.new_stock})>"
        )
