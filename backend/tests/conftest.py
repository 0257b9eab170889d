"""
Pytest fixtures for Stockbook backend tests.

Provides test database setup, record factories, and test clients.
"""

from datetime import datetime

import pytest
from stockbook import create_app
from stockbook.extensions import db
from stockbook.models import InventoryItem, Customer
from stockbook.services import sales_service
from stockbook.services.sales_service import SaleInput, SaleLineInput

ADMIN_EMAIL = "owner@stockbook.test"
ADMIN_PASSWORD = "Sup3r-Secret!"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'SECRET_KEY': 'test-secret-key',
    'ADMIN_EMAIL': ADMIN_EMAIL,
    'ADMIN_PASSWORD': ADMIN_PASSWORD,
    'ADMIN_PASSWORD_HASH': None,
    'BCRYPT_ROUNDS': 4,
    'FRONTEND_URL': 'http://localhost:5173',
    'LOW_STOCK_THRESHOLD': 10,
    'MAIL_SERVER': None,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def auth_client(client, db_session):
    """Test client carrying a valid session cookie."""
    response = client.post('/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture(scope='function')
def make_item(db_session):
    """Factory: insert an InventoryItem and return it."""
    def _make(name="Widget", quantity=10, price_cents=500, description=None):
        item = InventoryItem(name=name, quantity=quantity, price_cents=price_cents, description=description)
        db_session.add(item)
        db_session.commit()
        return item
    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    """Factory: insert a Customer and return it."""
    def _make(name="Corner Shop", mobile_number="9876543210", **address):
        customer = Customer(
            name=name,
            mobile_number=mobile_number,
            street=address.get("street", ""),
            city=address.get("city", ""),
            state=address.get("state", ""),
            postal_code=address.get("postal_code", ""),
        )
        db_session.add(customer)
        db_session.commit()
        return customer
    return _make


def line_for(item, quantity, price_cents=None, total_cents=None, name=None):
    """Build a SaleLineInput that matches the item unless overridden."""
    price = item.price_cents if price_cents is None else price_cents
    return SaleLineInput(
        item_id=item.id,
        name=name or item.name,
        quantity=quantity,
        price_cents=price,
        total_cents=quantity * price if total_cents is None else total_cents,
    )


@pytest.fixture(scope='function')
def make_sale(db_session):
    """Factory: record a sale through the sales service."""
    def _make(lines, customer_id=None, payment_type="cash", date=None):
        data = SaleInput(
            lines=list(lines),
            customer_id=customer_id,
            payment_type=payment_type,
            date=date or datetime(2026, 3, 1, 12, 0, 0),
        )
        return sales_service.create_sale(data)
    return _make


def quantity_of(item_id: int) -> int:
    """Read the stored quantity, bypassing the identity map."""
    return db.session.execute(
        db.select(InventoryItem.quantity).where(InventoryItem.id == item_id)
    ).scalar_one()
