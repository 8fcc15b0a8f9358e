"""AppUser model - cashier/owner accounts with email and password login."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, JSON
from werkzeug.security import generate_password_hash, check_password_hash
from kasir.database import Base, IdType
from kasir.utils.formatters import iso

PROFILE_FIELDS = ('business_name', 'wa_target_1', 'wa_target_2', 'wa_target_3')


class AppUser(Base):
    """Store owner account. Business configuration lives in ``profile``."""

    __tablename__ = 'app_user'

    id = Column(IdType, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=True)
    full_name = Column(String(200), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    profile = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def business_name(self):
        return (self.profile or {}).get('business_name') or self.full_name

    def update_profile(self, **fields):
        """Merge known metadata keys into ``profile`` (JSON columns need reassignment)."""
        merged = dict(self.profile or {})
        for key in PROFILE_FIELDS:
            if key in fields and fields[key] is not None:
                merged[key] = fields[key].strip() if isinstance(fields[key], str) else fields[key]
        self.profile = merged

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'active': self.active,
            'profile': dict(self.profile or {}),
            'created_at': iso(self.created_at),
        }

    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}')>"
