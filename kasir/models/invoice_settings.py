"""Invoice settings model - one receipt configuration per user."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey
from kasir.database import Base, IdType
from kasir.utils.formatters import iso

INVOICE_SETTINGS_DEFAULTS = {
    'business_name': 'TOKO SAYA',
    'business_address': 'Alamat Toko',
    'business_phone': '0812-3456-7890',
    'business_email': 'toko@email.com',
    'header_text': 'Terima kasih telah berbelanja di toko kami',
    'footer_text': 'Barang yang sudah dibeli tidak dapat dikembalikan',
    'show_business_info': True,
    'show_header_logo': False,
    'show_footer_text': True,
    'invoice_template': 'default',
}


class InvoiceSettings(Base):
    """Receipt header/footer configuration."""

    __tablename__ = 'invoice_settings'

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(IdType, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, unique=True)
    business_name = Column(String(200), nullable=False)
    business_address = Column(Text, nullable=True)
    business_phone = Column(String(50), nullable=True)
    business_email = Column(String(255), nullable=True)
    header_text = Column(Text, nullable=True)
    footer_text = Column(Text, nullable=True)
    show_business_info = Column(Boolean, nullable=False, default=True)
    show_header_logo = Column(Boolean, nullable=False, default=False)
    show_footer_text = Column(Boolean, nullable=False, default=True)
    invoice_template = Column(String(50), nullable=False, default='default')
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        data = {key: getattr(self, key) for key in INVOICE_SETTINGS_DEFAULTS}
        data['id'] = self.id
        data['updated_at'] = iso(self.updated_at)
        return data

    def __repr__(self):
        return f"<InvoiceSettings(user_id={self.user_id}, business='{self.business_name}')>"
