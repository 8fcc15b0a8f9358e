"""
Authentication service for user management.

Handles account creation, password login and profile metadata.
Session cookies are handled by the auth blueprint.
"""
import logging
import re
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from kasir.exceptions import AuthenticationError, BusinessLogicError, ValidationError
from kasir.models import AppUser, PROFILE_FIELDS

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?[0-9]{8,15}$')


def is_valid_email(email: str) -> bool:
    """Validate email format."""
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def _validate_registration(email: str, password: str) -> List[str]:
    errors = []
    if not is_valid_email(email):
        errors.append('Email tidak valid.')
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f'Password minimal {MIN_PASSWORD_LENGTH} karakter.')
    return errors


def find_user_by_email(session, email: str):
    return session.query(AppUser).filter(
        func.lower(AppUser.email) == (email or '').strip().lower()
    ).first()


def register_user(session, email: str, password: str, full_name: str = None,
                  business_name: str = None) -> AppUser:
    """
    Create an account.

    Raises:
        ValidationError: malformed email or short password
        BusinessLogicError: email already registered
    """
    email = (email or '').strip().lower()
    errors = _validate_registration(email, password)
    if errors:
        raise ValidationError(' '.join(errors), errors=errors)

    if find_user_by_email(session, email):
        raise BusinessLogicError('Email sudah terdaftar. Silakan login.')

    try:
        user = AppUser(email=email, full_name=(full_name or '').strip() or None, active=True)
        user.set_password(password)
        user.update_profile(business_name=business_name)
        session.add(user)
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.warning(f"Duplicate registration for {email}")
        raise BusinessLogicError('Email sudah terdaftar. Silakan login.')

    logger.info(f"User registered: id={user.id} email={email}")
    return user


def authenticate(session, email: str, password: str) -> AppUser:
    """
    Check credentials.

    Raises:
        ValidationError: email or password missing
        AuthenticationError: unknown user, inactive user or wrong password
    """
    if not email or not password:
        raise ValidationError('Email dan password wajib diisi.')

    user = find_user_by_email(session, email)
    if not user or not user.active or not user.check_password(password):
        logger.warning(f"Failed login for {email}")
        raise AuthenticationError('Email atau password salah.')
    return user


def get_active_user(session, user_id):
    if not user_id:
        return None
    return session.query(AppUser).filter(AppUser.id == user_id, AppUser.active.is_(True)).first()


def update_profile(session, user: AppUser, data: dict) -> AppUser:
    """Update full name and profile metadata (business name, WhatsApp targets)."""
    fields = {key: data.get(key) for key in PROFILE_FIELDS if key in data}
    for key in ('wa_target_1', 'wa_target_2', 'wa_target_3'):
        value = str(fields.get(key) or '').strip().replace(' ', '').replace('-', '')
        if value and not PHONE_PATTERN.match(value):
            raise ValidationError(f'Nomor WhatsApp tidak valid: {fields[key]}')
        if key in fields:
            fields[key] = value

    if 'full_name' in data and data['full_name'] is not None:
        user.full_name = str(data['full_name']).strip() or None
    user.update_profile(**fields)
    session.commit()
    return user
