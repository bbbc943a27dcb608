"""
Pytest fixtures for storefront backend tests.

Provides the application on an in-memory database, a fresh database per
test, back-office users with session headers, and inventory factories.
"""

from decimal import Decimal

import pytest
from storefront import create_app
from storefront.extensions import db
from storefront.models import InventoryItem, User
from storefront.services import session_service
from storefront.services.auth_service import hash_password

ADMIN_EMAIL = "admin@storefront.test"
STAFF_EMAIL = "staff@storefront.test"
PASSWORD = "Password123!"

_password_hash_cache = {}


def _password_hash() -> str:
    # one cost-12 bcrypt hash shared by every test user
    if PASSWORD not in _password_hash_cache:
        _password_hash_cache[PASSWORD] = hash_password(PASSWORD)
    return _password_hash_cache[PASSWORD]


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    upload_root = tmp_path_factory.mktemp("uploads")
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ADMIN_EMAIL': ADMIN_EMAIL,
        'STORAGE_BACKEND': 'local',
        'UPLOAD_FOLDER': str(upload_root),
        'VARIANT_DELETE_POLICY': 'orphan',
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
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    user = User(email=ADMIN_EMAIL, password_hash=_password_hash())
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def staff_user(db_session):
    """Authenticated, but not the ADMIN_EMAIL account."""
    user = User(email=STAFF_EMAIL, password_hash=_password_hash())
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    _, token = session_service.create_session(admin_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def staff_headers(staff_user):
    _, token = session_service.create_session(staff_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def make_item(db_session):
    """Factory for inventory rows inserted directly (no change notifications)."""
    def _make(
        name="Cotton Saree",
        category="Sarees (Cotton)",
        description="Handloom cotton saree",
        cost_price="300.00",
        selling_price="500.00",
        quantity=10,
        **extra,
    ) -> InventoryItem:
        item = InventoryItem(
            name=name,
            category=category,
            description=description,
            cost_price=Decimal(str(cost_price)),
            selling_price=Decimal(str(selling_price)),
            quantity=quantity,
            **extra,
        )
        db_session.add(item)
        db_session.commit()
        return item

    return _make


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
