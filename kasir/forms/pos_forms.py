"""
Forms for the flat JSON payloads of the stock, finance and auth endpoints.
Nested payloads (sale items, product barcodes/images) are validated in the services.
"""
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import DecimalField, PasswordField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from kasir.exceptions import ValidationError


class StockAddForm(FlaskForm):
    """Restock a product."""

    quantity = DecimalField(
        'Jumlah',
        validators=[
            Optional(),
            NumberRange(min=0, message='Jumlah tidak boleh negatif')
        ]
    )
    reason = StringField('Alasan', validators=[Optional(), Length(max=255)])
    notes = TextAreaField('Catatan', validators=[Optional()])


class StockAdjustForm(FlaskForm):
    """Adjust a product to, up by or down by a value."""

    value = DecimalField(
        'Nilai',
        validators=[
            Optional(),
            NumberRange(min=0, message='Nilai tidak boleh negatif')
        ]
    )
    mode = SelectField(
        'Mode',
        choices=[('set', 'Atur'), ('add', 'Tambah'), ('subtract', 'Kurangi')],
        default='set'
    )
    reason = StringField('Alasan', validators=[Optional(), Length(max=255)])
    notes = TextAreaField('Catatan', validators=[Optional()])


class PaymentChannelForm(FlaskForm):
    """Create a payment channel."""

    name = StringField(
        'Nama Channel',
        validators=[DataRequired(message='Nama channel wajib diisi'), Length(max=100)]
    )
    type = SelectField(
        'Tipe',
        choices=[('cash', 'Tunai'), ('digital', 'Dompet Digital'), ('bank', 'Bank')],
        default='digital'
    )
    initial_balance = DecimalField(
        'Saldo Awal',
        validators=[Optional(), NumberRange(min=0, message='Saldo awal tidak boleh negatif')],
        places=2
    )
    description = TextAreaField('Keterangan', validators=[Optional()])


class BalanceAdjustForm(FlaskForm):
    """Set a channel to an absolute balance."""

    new_balance = DecimalField(
        'Saldo Baru',
        validators=[Optional(), NumberRange(min=0, message='Saldo tidak boleh negatif')],
        places=2
    )
    reason = StringField('Alasan', validators=[Optional(), Length(max=255)])


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='Email wajib diisi')])
    password = PasswordField('Password', validators=[DataRequired(message='Password wajib diisi')])


class RegisterForm(FlaskForm):
    email = StringField(
        'Email',
        validators=[DataRequired(message='Email wajib diisi'), Length(max=255)]
    )
    password = PasswordField(
        'Password',
        validators=[DataRequired(message='Password wajib diisi'),
                    Length(min=6, message='Password minimal 6 karakter')]
    )
    full_name = StringField('Nama Lengkap', validators=[Optional(), Length(max=200)])
    business_name = StringField('Nama Usaha', validators=[Optional(), Length(max=200)])


def _scalar_items(payload: dict):
    for key, value in (payload or {}).items():
        if value is None or isinstance(value, (list, dict)):
            continue
        yield key, str(value)


def load_json_form(form_class, payload: dict):
    """
    Bind a form to a JSON body and validate it.

    JSON scalars are passed as strings so every field parses them the same
    way it parses a posted form.

    Raises:
        ValidationError: with the first message and all field errors
    """
    form = form_class(formdata=MultiDict(list(_scalar_items(payload))))
    if not form.validate():
        first = next(iter(form.errors.values()))[0]
        raise ValidationError(first, errors=form.errors)
    return form
