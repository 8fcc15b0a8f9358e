"""
Unit tests for SQLAlchemy models.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from kasir.models import (
    AppUser, Product, StockHistory, PaymentChannel, normalize_payment_method, split_barcodes,
)


class TestAppUserModel:
    """Tests for AppUser model."""

    def test_password_is_hashed(self, session, user1):
        assert user1.password_hash.startswith('scrypt:')
        assert user1.check_password('rahasia123')
        assert not user1.check_password('rahasia')

    def test_email_unique(self, session, user1):
        session.add(AppUser(email=user1.email, active=True))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_business_name_falls_back_to_full_name(self, session):
        user = AppUser(email='tono@example.com', full_name='Tono', active=True)
        assert user.business_name == 'Tono'
        user.update_profile(business_name='  Warung Tono ', unknown='x')
        assert user.business_name == 'Warung Tono'
        assert 'unknown' not in user.profile


class TestProductModel:
    """Tests for Product model."""

    def test_barcode_list(self, product_b):
        assert product_b.barcode == '8993675010016,8993675010023'
        assert product_b.barcodes == ['8993675010016', '8993675010023']

    def test_split_barcodes_drops_blanks_and_duplicates(self):
        assert split_barcodes(' 111, ,222,111 ') == ['111', '222']
        assert split_barcodes(['333', '', '333']) == ['333']
        assert split_barcodes(None) == []

    def test_stock_cannot_be_negative(self, session, product):
        product.stock = -1
        with pytest.raises(IntegrityError):
            session.commit()

    def test_to_dict(self, product):
        data = product.to_dict()
        assert data['price'] == 3500.0
        assert data['category'] == 'Makanan'
        assert data['brand'] == 'Indofood'
        assert data['image_url'] is None


class TestLedgerModels:
    def test_signed_quantity(self):
        assert StockHistory(type='addition', quantity=5).signed_quantity == 5
        assert StockHistory(type='reduction', quantity=5).signed_quantity == -5
        assert StockHistory(type='adjustment', quantity=0).signed_quantity == 0

    def test_cash_channel(self, cash_channel):
        assert cash_channel.is_cash
        assert not PaymentChannel(type='bank').is_cash

    @pytest.mark.parametrize('value,expected', [(None, 'cash'), ('CASH', 'cash'), (' bank ', 'bank')])
    def test_normalize_payment_method(self, value, expected):
        assert normalize_payment_method(value) == expected

    def test_unknown_payment_method(self):
        with pytest.raises(ValueError):
            normalize_payment_method('kredit')
