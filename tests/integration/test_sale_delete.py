"""
Integration tests for deleting sales and single sale items.
"""
from decimal import Decimal

import pytest

from kasir.exceptions import NotFoundError, SaleItemDeleteForbiddenError
from kasir.models import Sale, SaleItem, StockHistory
from kasir.services import sales_service, sale_delete_service


@pytest.fixture
def two_line_sale(session, user1, product, product_b, sale_payload):
    """Sale of 4 Indomie and 2 Aqua: total 22000, profit 3600."""
    payload = sale_payload(product, qty=4)
    payload['items'].append({'product_id': product_b.id, 'product_name': product_b.name,
                             'price': 4000, 'cost_price': 3200, 'qty': 2})
    return sales_service.record_sale(session, user1.id, payload)


class TestDeleteSaleItem:
    """Removing one line of a sale."""

    def test_item_removal_restores_stock_and_totals(self, session, user1, product, two_line_sale):
        item_id = two_line_sale['items'][0]['id']

        result = sale_delete_service.delete_sale_item(session, user1.id, item_id, allow_item_delete=True)

        assert result['sale_deleted'] is False
        assert result['remaining_items'] == 1
        assert result['total'] == 8000.0
        assert result['profit'] == 1600.0
        assert result['restored_stock']['new_stock'] == 30
        session.refresh(product)
        assert product.stock == 30

        entry = session.query(StockHistory).filter(
            StockHistory.product_id == product.id,
            StockHistory.type == 'addition'
        ).one()
        assert entry.quantity == 4
        assert entry.sale_id == two_line_sale['id']

    def test_last_item_removal_deletes_the_sale(self, session, user1, product, sale_payload):
        sale = sales_service.record_sale(session, user1.id, sale_payload(product, qty=2))

        result = sale_delete_service.delete_sale_item(session, user1.id, sale['items'][0]['id'])

        assert result['sale_deleted'] is True
        assert result['total'] == 0.0
        assert session.query(Sale).count() == 0
        session.refresh(product)
        assert product.stock == 30

    def test_forbidden_on_multi_item_sale(self, session, user1, product, two_line_sale):
        item_id = two_line_sale['items'][0]['id']

        with pytest.raises(SaleItemDeleteForbiddenError) as exc_info:
            sale_delete_service.delete_sale_item(session, user1.id, item_id, allow_item_delete=False)

        assert exc_info.value.payload['reason'] == 'item_delete_forbidden'
        assert session.query(SaleItem).count() == 2
        session.refresh(product)
        assert product.stock == 26

    def test_unknown_item(self, session, user1):
        with pytest.raises(NotFoundError):
            sale_delete_service.delete_sale_item(session, user1.id, 999)

    def test_forbidden_endpoint_returns_403(self, app, authenticated_client, two_line_sale):
        app.config['SALE_ITEM_DELETE_ENABLED'] = False
        try:
            response = authenticated_client.delete(f"/sales/items/{two_line_sale['items'][1]['id']}")
        finally:
            app.config['SALE_ITEM_DELETE_ENABLED'] = True

        assert response.status_code == 403
        body = response.get_json()
        assert body['reason'] == 'item_delete_forbidden'
        assert body['sale_id'] == two_line_sale['id']


class TestDeleteSale:
    def test_delete_restores_every_line(self, session, user1, product, product_b, two_line_sale):
        result = sale_delete_service.delete_sale(session, user1.id, two_line_sale['id'])

        assert len(result['restored_stock']) == 2
        assert session.query(Sale).count() == 0
        assert session.query(SaleItem).count() == 0
        session.refresh(product)
        session.refresh(product_b)
        assert (product.stock, product_b.stock) == (30, 3)
        # Ledger keeps the original reductions next to the reversals
        assert session.query(StockHistory).count() == 4

    def test_delete_reverses_cash_channel(self, session, user1, product, cash_channel, sale_payload):
        sale = sales_service.record_sale(
            session, user1.id, sale_payload(product, qty=2, payment_channel_id=cash_channel.id)
        )
        sale_delete_service.delete_sale(session, user1.id, sale['id'])
        session.refresh(cash_channel)
        assert cash_channel.balance == Decimal('0.00')

    def test_delete_after_item_removal_reverses_channel_once(self, session, user1, product, product_b,
                                                              cash_channel, sale_payload):
        payload = sale_payload(product, qty=4, payment_channel_id=cash_channel.id)
        payload['items'].append({'product_id': product_b.id, 'product_name': product_b.name,
                                 'price': 4000, 'cost_price': 3200, 'qty': 2})
        sale = sales_service.record_sale(session, user1.id, payload)
        session.refresh(cash_channel)
        assert cash_channel.balance == Decimal('22000.00')

        sale_delete_service.delete_sale_item(session, user1.id, sale['items'][0]['id'],
                                             allow_item_delete=True)
        session.refresh(cash_channel)
        assert cash_channel.balance == Decimal('8000.00')

        sale_delete_service.delete_sale(session, user1.id, sale['id'])
        session.refresh(cash_channel)
        assert cash_channel.balance == Decimal('0.00')

    def test_other_owner_cannot_delete(self, session, user2, two_line_sale):
        with pytest.raises(NotFoundError):
            sale_delete_service.delete_sale(session, user2.id, two_line_sale['id'])
        assert session.query(Sale).count() == 1

    def test_delete_endpoint(self, authenticated_client, two_line_sale):
        response = authenticated_client.delete(f"/sales/{two_line_sale['id']}")
        assert response.status_code == 200
        assert response.get_json()['data']['no_invoice'] == two_line_sale['no_invoice']
        assert authenticated_client.get(f"/sales/{two_line_sale['id']}").status_code == 404
