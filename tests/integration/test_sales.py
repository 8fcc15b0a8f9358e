"""
Integration tests for recording sales.
A sale, its items, the stock decrements and the channel payment commit together.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from kasir.exceptions import BusinessLogicError, InsufficientStockError, NotFoundError, ValidationError
from kasir.models import Sale, SaleItem, StockHistory, FinanceTransaction
from kasir.services import sales_service


class TestRecordSale:
    """Checkout persistence."""

    def test_sale_totals_are_computed_on_the_server(self, session, user1, product, product_b, sale_payload):
        payload = sale_payload(product, qty=2)
        payload['items'].append({
            'product_id': product_b.id, 'product_name': product_b.name,
            'price': 4000, 'cost_price': 3200, 'qty': 1,
        })
        payload['cash_amount'] = 20000

        sale = sales_service.record_sale(session, user1.id, payload, now=datetime(2024, 8, 14, 10, 5))

        assert sale['total'] == 11000.0
        assert sale['profit'] == 2200.0
        assert sale['change_amount'] == 9000.0
        assert sale['no_invoice'] == 'INV-20240814-1005'
        assert sale['item_count'] == 3
        assert len(sale['items']) == 2

    def test_sale_decrements_linked_stock_with_ledger_entry(self, session, user1, product, sale_payload):
        sale = sales_service.record_sale(session, user1.id, sale_payload(product, qty=5))

        session.refresh(product)
        assert product.stock == 25
        entry = session.query(StockHistory).filter(StockHistory.product_id == product.id).one()
        assert entry.type == 'reduction'
        assert (entry.quantity, entry.previous_stock, entry.new_stock) == (5, 30, 25)
        assert entry.reason == 'penjualan'
        assert entry.sale_id == sale['id']

    def test_unlinked_items_do_not_touch_stock(self, session, user1, product):
        payload = {
            'items': [{'product_name': 'Token Listrik 20rb', 'price': 21500, 'cost_price': 20000,
                       'qty': 1, 'token_code': '1234-5678-9012'}],
            'payment_method': 'digital',
        }
        sale = sales_service.record_sale(session, user1.id, payload)
        assert sale['items'][0]['product_id'] is None
        assert sale['items'][0]['token_code'] == '1234-5678-9012'
        assert sale['cash_amount'] is None
        assert session.query(StockHistory).count() == 0

    def test_overselling_rolls_back_everything(self, session, user1, product, product_b, sale_payload):
        payload = sale_payload(product, qty=2)
        payload['items'].append({'product_id': product_b.id, 'product_name': product_b.name,
                                 'price': 4000, 'qty': 4})

        with pytest.raises(InsufficientStockError):
            sales_service.record_sale(session, user1.id, payload)

        assert session.query(Sale).count() == 0
        assert session.query(SaleItem).count() == 0
        assert session.query(StockHistory).count() == 0
        session.refresh(product)
        assert product.stock == 30

    def test_cash_must_cover_total(self, session, user1, product, sale_payload):
        with pytest.raises(BusinessLogicError):
            sales_service.record_sale(session, user1.id, sale_payload(product, qty=2, cash_amount=5000))
        assert session.query(Sale).count() == 0

    @pytest.mark.parametrize('items', [[], None, [{'product_name': 'X', 'price': 100, 'qty': 0}],
                                       [{'product_name': '', 'price': 100, 'qty': 1}],
                                       [{'product_name': 'X', 'price': -1, 'qty': 1}]])
    def test_invalid_items(self, session, user1, items):
        with pytest.raises(ValidationError):
            sales_service.record_sale(session, user1.id, {'items': items})

    def test_invalid_payment_method(self, session, user1, product, sale_payload):
        with pytest.raises(ValidationError):
            sales_service.record_sale(session, user1.id, sale_payload(product, payment_method='kredit'))

    def test_foreign_product_is_not_found(self, session, user1, product_user2, sale_payload):
        with pytest.raises(NotFoundError):
            sales_service.record_sale(session, user1.id, sale_payload(product_user2))
        session.refresh(product_user2)
        assert product_user2.stock == 50


class TestSalePayments:
    def test_cash_channel_receives_the_total(self, session, user1, product, cash_channel, sale_payload):
        sale = sales_service.record_sale(
            session, user1.id, sale_payload(product, qty=2, payment_channel_id=cash_channel.id)
        )
        session.refresh(cash_channel)
        assert cash_channel.balance == Decimal('7000.00')
        assert sale['payment_channel'] == 'Laci Kasir'
        tx = session.query(FinanceTransaction).one()
        assert tx.type == 'income'
        assert tx.reference_id == sale['id']

    def test_non_cash_channel_needs_balance(self, session, user1, product, sale_payload):
        from kasir.services import finance_service
        channel = finance_service.create_channel(session, user1.id, 'DANA', 'digital', initial_balance=1000)

        with pytest.raises(BusinessLogicError):
            sales_service.record_sale(
                session, user1.id,
                sale_payload(product, qty=1, payment_method='digital', payment_channel_id=channel['id'])
            )
        assert session.query(Sale).count() == 0
        session.refresh(product)
        assert product.stock == 30


class TestSalesQueries:
    def test_history_newest_first(self, session, user1, product, sale_payload):
        first = sales_service.record_sale(session, user1.id, sale_payload(product), now=datetime(2024, 1, 1, 9))
        second = sales_service.record_sale(session, user1.id, sale_payload(product), now=datetime(2024, 1, 2, 9))
        history = sales_service.get_sales_history(session, user1.id)
        assert [s['id'] for s in history] == [second['id'], first['id']]

    def test_report_includes_end_day_boundary(self, session, user1, product, sale_payload):
        sales_service.record_sale(session, user1.id, sale_payload(product, qty=2),
                                  now=datetime(2024, 3, 10, 23, 59, 59, 999000))
        sales_service.record_sale(session, user1.id, sale_payload(product), now=datetime(2024, 3, 11, 0, 0))

        report = sales_service.get_sales_report(session, user1.id, '2024-03-01', '2024-03-10')
        assert report['summary']['transactions'] == 1
        assert report['summary']['total'] == 7000.0
        assert report['summary']['items_sold'] == 2

    def test_report_rejects_malformed_dates(self, session, user1):
        with pytest.raises(ValidationError):
            sales_service.get_sales_report(session, user1.id, '2024-03-xx', '2024-03-10')


class TestSalesEndpoints:
    def test_record_and_fetch(self, authenticated_client, product, sale_payload):
        response = authenticated_client.post('/sales', json=sale_payload(product, qty=3, cash_amount=20000))
        assert response.status_code == 201
        sale = response.get_json()['data']
        assert sale['total'] == 10500.0

        detail = authenticated_client.get(f"/sales/{sale['id']}")
        assert detail.status_code == 200
        assert detail.get_json()['data']['no_invoice'] == sale['no_invoice']

    def test_oversell_returns_409(self, authenticated_client, product, sale_payload):
        response = authenticated_client.post('/sales', json=sale_payload(product, qty=31))
        assert response.status_code == 409
        body = response.get_json()
        assert body['status'] == 'error'
        assert body['available'] == 30

    def test_report_requires_dates(self, authenticated_client):
        assert authenticated_client.get('/sales/report').status_code == 400
