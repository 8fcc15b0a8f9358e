"""
Integration tests for payment channels and their balance ledger.
"""
from decimal import Decimal

import pytest

from kasir.exceptions import BusinessLogicError, NotFoundError, ValidationError
from kasir.models import FinanceTransaction, PaymentChannel
from kasir.services import finance_service, sales_service


class TestChannels:
    def test_opening_balance_is_booked(self, session, user1):
        data = finance_service.create_channel(session, user1.id, 'BCA', 'bank', initial_balance=250000)

        assert data['balance'] == 250000.0
        assert data['initial_balance'] == 250000.0
        tx = session.query(FinanceTransaction).one()
        assert (tx.type, tx.description, tx.reference_type) == ('income', 'Modal awal', 'initial')
        assert (tx.previous_balance, tx.new_balance) == (Decimal('0.00'), Decimal('250000.00'))

    def test_invalid_type(self, session, user1):
        with pytest.raises(ValidationError):
            finance_service.create_channel(session, user1.id, 'Arisan', 'kripto')

    def test_delete_refused_while_funded(self, session, user1):
        channel = finance_service.create_channel(session, user1.id, 'OVO', 'digital', initial_balance=1000)
        with pytest.raises(BusinessLogicError):
            finance_service.delete_channel(session, user1.id, channel['id'])

    def test_delete_hides_empty_channel(self, session, user1, cash_channel):
        finance_service.delete_channel(session, user1.id, cash_channel.id)
        assert finance_service.list_channels(session, user1.id) == []
        assert session.query(PaymentChannel).count() == 1

    def test_update_keeps_balance(self, session, user1, cash_channel):
        data = finance_service.update_channel(session, user1.id, cash_channel.id,
                                              {'name': 'Laci Depan', 'balance': 999})
        assert data['name'] == 'Laci Depan'
        assert data['balance'] == 0.0


class TestBalanceAdjustment:
    def test_adjust_logs_the_difference(self, session, user1):
        channel = finance_service.create_channel(session, user1.id, 'GoPay', 'digital', initial_balance=50000)

        result = finance_service.adjust_balance(session, user1.id, channel['id'], 30000, reason='Tarik tunai')

        assert result['channel']['balance'] == 30000.0
        tx = result['transaction']
        assert (tx['type'], tx['amount'], tx['description']) == ('adjustment_out', 20000.0, 'Tarik tunai')

    def test_negative_balance_rejected(self, session, user1, cash_channel):
        with pytest.raises(ValidationError):
            finance_service.adjust_balance(session, user1.id, cash_channel.id, -5)

    def test_unknown_channel(self, session, user2, cash_channel):
        with pytest.raises(NotFoundError):
            finance_service.adjust_balance(session, user2.id, cash_channel.id, 100)


class TestTransactionReport:
    def test_report_groups_sale_payments(self, session, user1, product, cash_channel, sale_payload):
        for qty in (1, 2):
            sales_service.record_sale(session, user1.id,
                                      sale_payload(product, qty=qty, payment_channel_id=cash_channel.id))

        report = finance_service.get_transaction_report(session, user1.id)

        assert report['total_transactions'] == 2
        assert report['total_amount'] == 10500.0
        assert report['top_channel']['channel_name'] == 'Laci Kasir'
        assert report['channel_data'][0]['transaction_count'] == 2

        rows = finance_service.get_channel_transactions(session, user1.id, cash_channel.id)
        assert [row['new_balance'] for row in rows] == [10500.0, 3500.0]


class TestFinanceEndpoints:
    def test_create_through_form(self, authenticated_client):
        response = authenticated_client.post('/finance/channels', json={
            'name': 'Mandiri', 'type': 'bank', 'initial_balance': '100000',
        })
        assert response.status_code == 201
        assert response.get_json()['data']['balance'] == 100000.0

    def test_form_errors(self, authenticated_client):
        response = authenticated_client.post('/finance/channels', json={'type': 'bank'})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Nama channel wajib diisi'

        response = authenticated_client.post('/finance/channels', json={'name': 'X', 'type': 'kripto'})
        assert response.status_code == 400

    def test_adjust_and_history(self, authenticated_client, cash_channel):
        response = authenticated_client.post(f'/finance/channels/{cash_channel.id}/adjust',
                                             json={'new_balance': 75000})
        assert response.status_code == 200
        rows = authenticated_client.get(f'/finance/channels/{cash_channel.id}/transactions').get_json()['data']
        assert rows[0]['type'] == 'adjustment_in'
        assert rows[0]['description'] == 'Penyesuaian saldo'

    def test_delete_funded_channel_returns_400(self, authenticated_client, session, user1):
        channel = finance_service.create_channel(session, user1.id, 'DANA', 'digital', initial_balance=10)
        assert authenticated_client.delete(f"/finance/channels/{channel['id']}").status_code == 400

    def test_report_endpoint(self, authenticated_client):
        data = authenticated_client.get('/finance/report').get_json()['data']
        assert data['total_transactions'] == 0
        assert data['top_channel'] is None
