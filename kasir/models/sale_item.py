"""Sale Item model."""
from sqlalchemy import Column, String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from kasir.database import Base, IdType
from kasir.utils.formatters import money


class SaleItem(Base):
    """Sale Item (detail transaksi). Name and prices are snapshots taken at sale time."""

    __tablename__ = 'sale_item'

    id = Column(IdType, primary_key=True, autoincrement=True)
    sale_id = Column(IdType, ForeignKey('sale.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(IdType, ForeignKey('product.id', ondelete='SET NULL'), nullable=True, index=True)
    product_name = Column(String(255), nullable=False)
    barcode = Column(String(500), nullable=True)
    price = Column(Numeric(14, 2), nullable=False)
    cost_price = Column(Numeric(14, 2), nullable=False, default=0)
    qty = Column(Integer, nullable=False)
    line_total = Column(Numeric(14, 2), nullable=False)
    line_profit = Column(Numeric(14, 2), nullable=False)
    token_code = Column(String(100), nullable=True)

    # Relationships
    sale = relationship('Sale', back_populates='items')

    def to_dict(self):
        return {
            'id': self.id,
            'sale_id': self.sale_id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'barcode': self.barcode,
            'price': money(self.price),
            'cost_price': money(self.cost_price),
            'qty': self.qty,
            'line_total': money(self.line_total),
            'line_profit': money(self.line_profit),
            'token_code': self.token_code,
        }

    def __repr__(self):
        return f"<SaleItem(id={self.id}, product='{self.product_name}', qty={self.qty})>"
