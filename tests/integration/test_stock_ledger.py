"""
Integration tests for the stock ledger.
Every stock change must leave exactly one consistent history entry.
"""
import pytest
from prometheus_client import REGISTRY

from kasir.exceptions import InsufficientStockError, NotFoundError, ValidationError
from kasir.models import StockHistory
from kasir.services import sales_service, stock_service


def _entries(session, product):
    return session.query(StockHistory).filter(
        StockHistory.product_id == product.id
    ).order_by(StockHistory.id).all()


class TestAddStock:
    """Restocking."""

    def test_add_stock_writes_one_addition_entry(self, session, user1, product):
        result = stock_service.add_stock(session, user1.id, product.id, 20)

        assert result['previous_stock'] == 30
        assert result['new_stock'] == 50
        session.refresh(product)
        assert product.stock == 50

        entries = _entries(session, product)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.type == 'addition'
        assert (entry.quantity, entry.previous_stock, entry.new_stock) == (20, 30, 50)
        assert entry.reason == stock_service.REASON_MANUAL_ADD

    @pytest.mark.parametrize('quantity', [0, -5, 2.5, 'banyak', None])
    def test_invalid_quantity_is_rejected_without_writes(self, session, user1, product, quantity):
        with pytest.raises(ValidationError):
            stock_service.add_stock(session, user1.id, product.id, quantity)
        session.refresh(product)
        assert product.stock == 30
        assert _entries(session, product) == []

    def test_unknown_product(self, session, user1):
        with pytest.raises(NotFoundError):
            stock_service.add_stock(session, user1.id, 9999, 1)


class TestAdjustStock:
    """Adjustments in set / add / subtract mode."""

    def test_set_lower_records_reduction(self, session, user1, product):
        result = stock_service.adjust_stock(session, user1.id, product.id, 12, mode='set')
        assert result['type'] == 'reduction'
        assert result['quantity'] == 18
        assert result['new_stock'] == 12

    def test_set_same_value_records_zero_adjustment(self, session, user1, product):
        result = stock_service.adjust_stock(session, user1.id, product.id, 30, mode='set')
        assert result['type'] == 'adjustment'
        assert result['quantity'] == 0
        assert result['previous_stock'] == result['new_stock'] == 30

    def test_subtract_clamps_at_zero(self, session, user1, product):
        result = stock_service.adjust_stock(session, user1.id, product.id, 100, mode='subtract')
        assert result['new_stock'] == 0
        assert result['quantity'] == 30

    def test_add_mode(self, session, user1, product):
        result = stock_service.adjust_stock(session, user1.id, product.id, 5, mode='add')
        assert result['type'] == 'addition'
        assert result['new_stock'] == 35

    def test_unknown_mode(self, session, user1, product):
        with pytest.raises(ValidationError):
            stock_service.adjust_stock(session, user1.id, product.id, 5, mode='multiply')

    def test_ledger_chain_matches_stock_over_sequence(self, session, user1, product):
        stock_service.add_stock(session, user1.id, product.id, 10)
        stock_service.adjust_stock(session, user1.id, product.id, 4, mode='subtract')
        stock_service.adjust_stock(session, user1.id, product.id, 50, mode='set')
        stock_service.adjust_stock(session, user1.id, product.id, 50, mode='set')

        entries = _entries(session, product)
        assert len(entries) == 4
        for entry in entries:
            assert entry.new_stock == entry.previous_stock + entry.signed_quantity
        for before, after in zip(entries, entries[1:]):
            assert after.previous_stock == before.new_stock
        session.refresh(product)
        assert product.stock == entries[-1].new_stock == 50


class TestSaleReduction:
    def test_reduction_cannot_oversell(self, session, user1, product):
        locked = stock_service.lock_product(session, user1.id, product.id)
        with pytest.raises(InsufficientStockError) as exc:
            stock_service.reduce_stock_for_sale(session, locked, user1.id, 31, sale_id=1)
        session.rollback()
        assert exc.value.status_code == 409
        assert exc.value.payload['available'] == 30


class TestStockHistory:
    def test_history_newest_first_with_product_snapshot(self, session, user1, product):
        stock_service.add_stock(session, user1.id, product.id, 1)
        stock_service.add_stock(session, user1.id, product.id, 2)

        history = stock_service.get_stock_history(session, user1.id, product_id=product.id)
        assert [h['quantity'] for h in history] == [2, 1]
        assert history[0]['product_name'] == 'Indomie Goreng'
        assert history[0]['barcode'] == '8992388101012'

    def test_period_filter_is_applied_before_limit(self, session, user1, product):
        stock_service.add_stock(session, user1.id, product.id, 1)
        assert stock_service.get_stock_history(session, user1.id, period='today', limit=1)
        assert stock_service.get_stock_history(session, user1.id, period='yesterday') == []

    def test_history_endpoint(self, authenticated_client, user1, product):
        authenticated_client.post(f'/stock/{product.id}/add', json={'quantity': 20, 'reason': 'Kiriman supplier'})
        response = authenticated_client.get(f'/stock/history?product_id={product.id}')
        assert response.status_code == 200
        data = response.get_json()['data']
        assert len(data) == 1
        assert data[0]['reason'] == 'Kiriman supplier'


class TestStockEndpoints:
    def test_add_endpoint(self, authenticated_client, product):
        response = authenticated_client.post(f'/stock/{product.id}/add', json={'quantity': 20})
        assert response.status_code == 200
        body = response.get_json()
        assert body['status'] == 'success'
        assert body['data']['new_stock'] == 50

    def test_add_endpoint_rejects_fraction(self, authenticated_client, product):
        response = authenticated_client.post(f'/stock/{product.id}/add', json={'quantity': 1.5})
        assert response.status_code == 400
        assert response.get_json()['status'] == 'error'

    def test_adjust_endpoint(self, authenticated_client, product):
        response = authenticated_client.post(f'/stock/{product.id}/adjust', json={'value': 0, 'mode': 'set'})
        assert response.status_code == 200
        assert response.get_json()['data']['new_stock'] == 0

    def test_requires_login(self, client, product):
        response = client.post(f'/stock/{product.id}/add', json={'quantity': 1})
        assert response.status_code == 401


def _movement_count(change_type):
    return REGISTRY.get_sample_value('kasir_stock_movements_total', {'type': change_type}) or 0.0


class TestStockMovementMetrics:
    """Movement counters only see committed ledger entries."""

    def test_committed_addition_is_counted_once(self, session, user1, product):
        before = _movement_count('addition')
        stock_service.add_stock(session, user1.id, product.id, 5)
        assert _movement_count('addition') == before + 1

    def test_failed_sale_counts_no_reduction(self, session, user1, product, product_b, sale_payload):
        payload = sale_payload(product, qty=2)
        payload['items'].append({'product_id': product_b.id, 'product_name': product_b.name,
                                 'price': 4000, 'cost_price': 3200, 'qty': 5})
        before = _movement_count('reduction')

        with pytest.raises(InsufficientStockError):
            sales_service.record_sale(session, user1.id, payload)

        assert _movement_count('reduction') == before
        session.refresh(product)
        assert product.stock == 30
