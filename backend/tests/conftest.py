"""
Pytest fixtures for the estoque backend tests.

Provides test database setup, a test client, and product/movement factories.
"""

import pytest
from estoque import create_app
from estoque.extensions import db
from estoque.models import Product
from estoque.services import inventory_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOW_STOCK_THRESHOLD': 5,
        'CORS_ALLOWED_ORIGINS': {'http://localhost:5173'},
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: register a product directly in the store."""
    def _make(factory_code="X-500", description="Pallet wrap 500mm", **kwargs):
        product = Product(
            factory_code=factory_code,
            supplier_code=kwargs.get("supplier_code", f"SUP-{factory_code}"),
            description=description,
            supplier_name=kwargs.get("supplier_name", "Acme Supplies"),
            unit_of_measure=kwargs.get("unit_of_measure", "UN"),
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def product_x500(make_product):
    """Create product X-500."""
    return make_product()


@pytest.fixture(scope='function')
def stock(db_session):
    """Helpers to record movements through the service layer."""
    class _Stock:
        @staticmethod
        def receive(factory_code, quantity, unit_price_cents=1000):
            return inventory_service.record_inflow(
                factory_code=factory_code,
                quantity=quantity,
                unit_price_cents=unit_price_cents,
                total_price_cents=unit_price_cents * quantity,
                invoice_ref="NF-1",
            )

        @staticmethod
        def ship(factory_code, quantity, truck_plate="ABC1D23", recipient="Depot North"):
            return inventory_service.record_outflow(
                factory_code=factory_code,
                quantity=quantity,
                truck_plate=truck_plate,
                recipient=recipient,
            )

    return _Stock()
