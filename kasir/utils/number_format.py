"""Number parsing utilities for Rupiah amounts."""
import re
from decimal import Decimal, InvalidOperation

from kasir.exceptions import ValidationError

# 1.500.000 or 1.500.000,50 (thousands '.', decimals ',')
ID_NUMBER_PATTERN = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+),\d+$|^\d{1,3}(?:\.\d{3})+$")

CENT = Decimal('0.01')


def parse_id_number(value: str) -> Decimal:
    """
    Parse a number typed Indonesian style, with an optional 'Rp' prefix.

    Plain machine numbers ('2500', '2500.5') are accepted as well.

    Raises:
        ValueError: if the value is not a number.
    """
    cleaned = value.strip()
    if cleaned.lower().startswith('rp'):
        cleaned = cleaned[2:].strip()
    if ID_NUMBER_PATTERN.match(cleaned):
        cleaned = cleaned.replace('.', '').replace(',', '.')
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f'Angka tidak valid: {value}')


def parse_money(value, field: str = 'Jumlah') -> Decimal:
    """Non-negative amount rounded to cents; raises ValidationError otherwise."""
    if isinstance(value, bool) or value is None or value == '':
        raise ValidationError(f'{field} wajib diisi')
    try:
        if isinstance(value, str):
            amount = parse_id_number(value)
        else:
            amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} harus berupa angka')
    if not amount.is_finite():
        raise ValidationError(f'{field} harus berupa angka')
    if amount < 0:
        raise ValidationError(f'{field} tidak boleh negatif')
    return amount.quantize(CENT)
