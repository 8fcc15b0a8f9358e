"""Public storefront product model."""
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, Boolean, DateTime, Text, ForeignKey, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from kasir.database import Base, IdType
from kasir.utils.formatters import iso, money


class PublicProduct(Base):
    """
    Product listed on the public storefront.

    Independent of the till catalog: its stock is a plain displayed number
    maintained by the owner and is never moved by sales.
    """

    __tablename__ = 'public_product'
    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_public_product_stock_non_negative'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    price = Column(Numeric(14, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    image_urls = Column(JSON, nullable=False, default=list)
    brand_id = Column(IdType, ForeignKey('public_brand.id', ondelete='SET NULL'), nullable=True)
    category_id = Column(IdType, ForeignKey('public_category.id', ondelete='SET NULL'), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    # Relationships
    brand = relationship('PublicBrand', foreign_keys=[brand_id])
    category = relationship('PublicCategory', foreign_keys=[category_id])

    def to_public_dict(self):
        """Storefront view: no owner or audit fields."""
        return {
            'id': self.id,
            'title': self.title,
            'price': money(self.price),
            'stock': self.stock,
            'description': self.description,
            'image_urls': list(self.image_urls or []),
            'is_active': self.is_active,
            'brand': {'id': self.brand.id, 'name': self.brand.name} if self.brand else None,
            'category': {'id': self.category.id, 'name': self.category.name} if self.category else None,
        }

    def to_dict(self):
        data = self.to_public_dict()
        data.update({
            'brand_id': self.brand_id,
            'category_id': self.category_id,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        })
        return data

    def __repr__(self):
        return f"<PublicProduct(id={self.id}, title='{self.title}', active={self.is_active})>"
