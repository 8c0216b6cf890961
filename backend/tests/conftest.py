"""
Pytest fixtures for Sinari backend tests.

Provides test database setup, one user per role, sample inventory and a
test client.
"""

import pytest

from sinari import create_app
from sinari.config import TestConfig
from sinari.extensions import db
from sinari.models import User, Product, Technician
from sinari.services.auth_service import hash_password
from sinari.services.session_service import create_session


DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before each test."""
    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='session')
def password_hash(app):
    """bcrypt is deliberately slow; hash the shared test password once."""
    return hash_password(DEFAULT_PASSWORD)


def make_user(session, password_hash, username: str, role: str, email: str | None = None) -> User:
    user = User(
        username=username,
        email=email or f"{username}@test.local",
        name=username.title(),
        password_hash=password_hash,
        role=role,
    )
    session.add(user)
    session.commit()
    return user


def auth_headers(user: User) -> dict:
    """Issue a fresh session for user and return Authorization headers."""
    token = create_session(user)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def owner(db_session, password_hash):
    return make_user(db_session, password_hash, "owner", "OWNER")


@pytest.fixture(scope='function')
def admin(db_session, password_hash):
    return make_user(db_session, password_hash, "admin", "ADMIN")


@pytest.fixture(scope='function')
def technician_user(db_session, password_hash):
    return make_user(db_session, password_hash, "tech", "TECHNICIAN")


@pytest.fixture(scope='function')
def customer(db_session, password_hash):
    return make_user(db_session, password_hash, "customer", "CUSTOMER")


@pytest.fixture(scope='function')
def owner_headers(owner):
    return auth_headers(owner)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture(scope='function')
def technician_headers(technician_user):
    return auth_headers(technician_user)


@pytest.fixture(scope='function')
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture(scope='function')
def product(db_session):
    """LCD with stock 10, price 10000, cost 8000."""
    product = Product(
        name="LCD iPhone 11",
        brand="APPLE",
        manufacturer="ORIGINAL",
        category="LCD",
        price=10000,
        cost_price=8000,
        stock=10,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def technician(db_session):
    technician = Technician(name="Budi", is_active=True)
    db_session.add(technician)
    db_session.commit()
    return technician


@pytest.fixture(scope='function')
def service_payload():
    return {
        "brand": "Samsung",
        "model": "Galaxy A52",
        "customer_name": "Andi",
        "phone_number": "0812-3456-7890",
        "description": "Screen cracked",
        "service_list": [
            {"name": "Diagnostics", "price": 1000},
            {"name": "Replace LCD", "price": 10000},
        ],
        "discount": 10,
    }


def reload(model, pk):
    """Fetch a fresh copy of a row, bypassing anything cached in the session."""
    db.session.expire_all()
    return db.session.get(model, pk)
