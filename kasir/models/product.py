"""Product model."""
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from kasir.database import Base, IdType
from kasir.utils.formatters import iso, money


def split_barcodes(value):
    """
    Normalize barcode input to a list.

    Accepts a list or a comma separated string; trims, drops blanks and
    duplicates while keeping order.
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(',')
    else:
        parts = list(value)
    seen = []
    for part in parts:
        code = str(part).strip()
        if code and code not in seen:
            seen.append(code)
    return seen


class Product(Base):
    """Product model."""

    __tablename__ = 'product'
    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    barcode = Column(String(500), nullable=True)  # comma-joined list
    price = Column(Numeric(14, 2), nullable=False, default=0)
    cost_price = Column(Numeric(14, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    category_id = Column(IdType, ForeignKey('category.id', ondelete='SET NULL'), nullable=True)
    brand_id = Column(IdType, ForeignKey('brand.id', ondelete='SET NULL'), nullable=True)
    image_urls = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    # Relationships
    category = relationship('Category', foreign_keys=[category_id])
    brand = relationship('Brand', foreign_keys=[brand_id])

    @property
    def barcodes(self):
        return split_barcodes(self.barcode)

    @barcodes.setter
    def barcodes(self, value):
        codes = split_barcodes(value)
        self.barcode = ','.join(codes) if codes else None

    @property
    def image_url(self):
        """First image, used as thumbnail."""
        return self.image_urls[0] if self.image_urls else None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'barcode': self.barcode,
            'barcodes': self.barcodes,
            'price': money(self.price),
            'cost_price': money(self.cost_price),
            'stock': self.stock,
            'category_id': self.category_id,
            'category': self.category.name if self.category else None,
            'brand_id': self.brand_id,
            'brand': self.brand.name if self.brand else None,
            'image_urls': list(self.image_urls or []),
            'image_url': self.image_url,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"
