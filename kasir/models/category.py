"""Category model."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from kasir.database import Base, IdType


class Category(Base):
    """Product Category."""

    __tablename__ = 'category'

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_dict(self):
        return {'id': self.id, 'name': self.name}

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"
