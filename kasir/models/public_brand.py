"""Public storefront brand model."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from kasir.database import Base, IdType


class PublicBrand(Base):
    """Brand shown on the public storefront; separate from the till's brands."""

    __tablename__ = 'public_brand'

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'description': self.description}

    def __repr__(self):
        return f"<PublicBrand(id={self.id}, name='{self.name}')>"
