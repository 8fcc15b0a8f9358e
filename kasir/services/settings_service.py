"""
Receipt configuration: per-user invoice settings and named invoice templates.
"""
import logging
from typing import Optional

from kasir.exceptions import ValidationError, NotFoundError
from kasir.models import InvoiceSettings, INVOICE_SETTINGS_DEFAULTS, CustomInvoice, PAPER_SIZES

logger = logging.getLogger(__name__)

BOOLEAN_SETTINGS = ('show_business_info', 'show_header_logo', 'show_footer_text')


def _create_default_settings(session, user_id: int) -> InvoiceSettings:
    settings = InvoiceSettings(user_id=user_id, **INVOICE_SETTINGS_DEFAULTS)
    session.add(settings)
    session.commit()
    logger.info(f"Default invoice settings created for user {user_id}")
    return settings


def get_invoice_settings(session, user_id: int) -> dict:
    """Settings for the user, created with defaults on first read."""
    settings = session.query(InvoiceSettings).filter(InvoiceSettings.user_id == user_id).first()
    if settings is None:
        settings = _create_default_settings(session, user_id)
    return settings.to_dict()


def update_invoice_settings(session, user_id: int, data: dict) -> dict:
    """Update known setting keys; unknown keys are ignored."""
    settings = session.query(InvoiceSettings).filter(InvoiceSettings.user_id == user_id).first()
    if settings is None:
        settings = _create_default_settings(session, user_id)

    for key in INVOICE_SETTINGS_DEFAULTS:
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if key in BOOLEAN_SETTINGS:
            value = bool(value)
        elif isinstance(value, str):
            value = value.strip()
        setattr(settings, key, value)

    if not settings.business_name:
        session.rollback()
        raise ValidationError('Nama usaha wajib diisi')

    session.commit()
    return settings.to_dict()


def reset_invoice_settings(session, user_id: int) -> dict:
    """Drop the user's settings and recreate them from the defaults."""
    session.query(InvoiceSettings).filter(InvoiceSettings.user_id == user_id).delete()
    session.flush()
    return _create_default_settings(session, user_id).to_dict()


def _validate_template(data: dict, partial: bool = False) -> dict:
    clean = {}
    if not partial or 'title' in data:
        title = str(data.get('title') or '').strip()
        if not title:
            raise ValidationError('Judul invoice wajib diisi')
        clean['title'] = title
    if not partial or 'paper_size' in data:
        paper_size = data.get('paper_size') or '58mm'
        if paper_size not in PAPER_SIZES:
            raise ValidationError(f'Ukuran kertas tidak valid: {paper_size}')
        clean['paper_size'] = paper_size
    for key in ('header_content', 'footer_content'):
        if key in data:
            clean[key] = data[key] or None
    if 'show_logo' in data:
        clean['show_logo'] = bool(data['show_logo'])
    return clean


def _get_template(session, owner_id: int, invoice_id: int) -> CustomInvoice:
    template = session.query(CustomInvoice).filter(
        CustomInvoice.id == invoice_id,
        CustomInvoice.owner_id == owner_id
    ).first()
    if not template:
        raise NotFoundError('Template invoice tidak ditemukan')
    return template


def list_custom_invoices(session, owner_id: int) -> list:
    rows = session.query(CustomInvoice).filter(
        CustomInvoice.owner_id == owner_id
    ).order_by(CustomInvoice.created_at.desc(), CustomInvoice.id.desc()).all()
    return [row.to_dict() for row in rows]


def create_custom_invoice(session, owner_id: int, data: dict) -> dict:
    template = CustomInvoice(owner_id=owner_id, **_validate_template(data))
    session.add(template)
    session.commit()
    return template.to_dict()


def update_custom_invoice(session, owner_id: int, invoice_id: int, data: dict) -> dict:
    template = _get_template(session, owner_id, invoice_id)
    for key, value in _validate_template(data, partial=True).items():
        setattr(template, key, value)
    session.commit()
    return template.to_dict()


def delete_custom_invoice(session, owner_id: int, invoice_id: int) -> Optional[int]:
    template = _get_template(session, owner_id, invoice_id)
    session.delete(template)
    session.commit()
    return invoice_id
