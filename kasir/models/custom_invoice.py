"""Custom invoice template model."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey
from kasir.database import Base, IdType
from kasir.utils.formatters import iso

PAPER_SIZES = ('58mm', '80mm')


class CustomInvoice(Base):
    """Named receipt layout chosen when printing."""

    __tablename__ = 'custom_invoice'

    id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    paper_size = Column(String(10), nullable=False, default='58mm')
    header_content = Column(Text, nullable=True)
    footer_content = Column(Text, nullable=True)
    show_logo = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'paper_size': self.paper_size,
            'header_content': self.header_content,
            'footer_content': self.footer_content,
            'show_logo': self.show_logo,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f"<CustomInvoice(id={self.id}, title='{self.title}')>"
