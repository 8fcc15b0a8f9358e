"""Public storefront category model."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from kasir.database import Base, IdType


class PublicCategory(Base):
    __tablename__ = 'public_category'

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'description': self.description}

    def __repr__(self):
        return f"<PublicCategory(id={self.id}, name='{self.name}')>"
