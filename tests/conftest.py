import os
from decimal import Decimal

import pytest

# In-memory SQLite and no Redis; must be set before config.Config is loaded
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['CACHE_ENABLED'] = 'false'
os.environ.setdefault('SECRET_KEY', 'test-secret-key')

from kasir import create_app
from kasir.database import create_tables, drop_tables, get_session
from kasir.models import AppUser, Category, Brand, Product, PaymentChannel


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.Config')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    return app


@pytest.fixture(autouse=True)
def database(app):
    """Fresh schema for every test, inside an application context."""
    with app.app_context():
        create_tables(app)
        yield
        get_session().remove()
        drop_tables(app)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(database):
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()


def _make_user(session, email, full_name, business_name):
    user = AppUser(email=email, full_name=full_name, active=True)
    user.set_password('rahasia123')
    user.update_profile(business_name=business_name)
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def user1(session):
    """Owner of the first store."""
    return _make_user(session, 'budi@tokobudi.id', 'Budi Santoso', 'Toko Budi')


@pytest.fixture(scope='function')
def user2(session):
    """Owner of a second store, for isolation tests."""
    return _make_user(session, 'sari@warungsari.id', 'Sari Wulandari', 'Warung Sari')


@pytest.fixture(scope='function')
def category(session, user1):
    category = Category(owner_id=user1.id, name='Makanan')
    session.add(category)
    session.commit()
    return category


@pytest.fixture(scope='function')
def brand(session, user1):
    brand = Brand(owner_id=user1.id, name='Indofood')
    session.add(brand)
    session.commit()
    return brand


@pytest.fixture(scope='function')
def product(session, user1, category, brand):
    """Indomie with 30 units on hand and no ledger entries yet."""
    product = Product(
        owner_id=user1.id,
        name='Indomie Goreng',
        price=Decimal('3500'),
        cost_price=Decimal('2800'),
        stock=30,
        category_id=category.id,
        brand_id=brand.id,
        image_urls=[],
    )
    product.barcodes = ['8992388101012']
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(session, user1):
    """Aqua without category or brand."""
    product = Product(
        owner_id=user1.id,
        name='Aqua 600ml',
        price=Decimal('4000'),
        cost_price=Decimal('3200'),
        stock=3,
        image_urls=[],
    )
    product.barcodes = '8993675010016, 8993675010023'
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def product_user2(session, user2):
    product = Product(
        owner_id=user2.id,
        name='Kopi Kapal Api',
        price=Decimal('1500'),
        cost_price=Decimal('1100'),
        stock=50,
        image_urls=[],
    )
    product.barcodes = ['8991002101050']
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def cash_channel(session, user1):
    channel = PaymentChannel(owner_id=user1.id, name='Laci Kasir', type='cash',
                             balance=Decimal('0'), initial_balance=Decimal('0'))
    session.add(channel)
    session.commit()
    return channel


@pytest.fixture(scope='function')
def authenticated_client(client, user1):
    """Create authenticated client for user1."""
    with client.session_transaction() as sess:
        sess['user_id'] = user1.id
    return client


def _sale_payload(product, qty=1, **extra):
    payload = {
        'items': [{
            'product_id': product.id,
            'product_name': product.name,
            'barcode': product.barcode,
            'price': float(product.price),
            'cost_price': float(product.cost_price),
            'qty': qty,
        }],
        'payment_method': 'cash',
    }
    payload.update(extra)
    return payload


@pytest.fixture
def sale_payload():
    """Builder for a checkout body with one line for a product."""
    return _sale_payload
