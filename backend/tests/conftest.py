"""
Pytest fixtures for ventas backend tests.

Provides test database setup, tenant fixtures, bearer tokens and test client.
"""

from decimal import Decimal

import pytest
from jose import jwt

from ventas import create_app
from ventas.extensions import db
from ventas.models import Organization, UserRole, Customer, Product, Sale, SaleLineItem
from ventas.services.tenant_service import TenantContext

JWT_SECRET = "test-jwt-secret"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'AUTH_JWT_SECRET': JWT_SECRET,
        'AUTH_JWT_AUDIENCE': None,
    })

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


def make_token(user_id: str, **claims) -> str:
    """Access token as the auth service would issue it."""
    return jwt.encode({"sub": user_id, **claims}, JWT_SECRET, algorithm="HS256")


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def grant(db_session, user_id: str, org: Organization, role: str) -> dict:
    db_session.add(UserRole(user_id=user_id, org_id=org.id, role=role, is_active=True))
    db_session.commit()
    return auth_headers(user_id)


@pytest.fixture(scope='function')
def org_a(db_session):
    """Create Organization A (first tenant)."""
    org = Organization(name="Org A - Tienda Centro")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def org_b(db_session):
    """Create Organization B (second tenant)."""
    org = Organization(name="Org B - Tienda Norte")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def ctx_a(org_a):
    return TenantContext(org_id=org_a.id, role="admin", user_id="admin-a")


@pytest.fixture(scope='function')
def ctx_b(org_b):
    return TenantContext(org_id=org_b.id, role="admin", user_id="admin-b")


@pytest.fixture(scope='function')
def admin_headers(db_session, org_a):
    return grant(db_session, "admin-a", org_a, "admin")


@pytest.fixture(scope='function')
def manager_headers(db_session, org_a):
    return grant(db_session, "manager-a", org_a, "manager")


@pytest.fixture(scope='function')
def cashier_headers(db_session, org_a):
    return grant(db_session, "cashier-a", org_a, "cashier")


@pytest.fixture(scope='function')
def admin_b_headers(db_session, org_b):
    return grant(db_session, "admin-b", org_b, "admin")


@pytest.fixture(scope='function')
def product_a(db_session, org_a):
    """Product in Org A."""
    product = Product(org_id=org_a.id, code="CAF-001", name="Cafe molido 500g", price=Decimal("12500.00"))
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, org_b):
    """Product in Org B."""
    product = Product(org_id=org_b.id, code="CAF-001", name="Cafe en grano 1kg", price=Decimal("30000.00"))
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def customer_a(db_session, org_a):
    customer = Customer(org_id=org_a.id, name="Ana Gomez", doc_type="CC", doc_number="12345678", email="ana@example.com")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, org_b):
    customer = Customer(org_id=org_b.id, name="Bruno Diaz", doc_type="CC", doc_number="87654321")
    db_session.add(customer)
    db_session.commit()
    return customer


def record_sale(db_session, org: Organization, product: Product, quantity: int, customer=None) -> Sale:
    """Write a sale straight to the database, bypassing the service."""
    sale = Sale(org_id=org.id, customer_id=customer.id if customer else None, number="V0000000001")
    db_session.add(sale)
    db_session.flush()
    db_session.add(SaleLineItem(sale_id=sale.id, product_id=product.id, quantity=quantity, unit_price=product.price))
    db_session.commit()
    return sale


@pytest.fixture(scope='function')
def sell(db_session):
    """record_sale bound to the test session."""
    def _sell(org, product, quantity, customer=None):
        return record_sale(db_session, org, product, quantity, customer)
    return _sell
