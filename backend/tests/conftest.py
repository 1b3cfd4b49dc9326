"""
Pytest fixtures for Cosy Books backend tests.

Provides the application on an in-memory database, a per-test clean
schema, user/store factories and auth helpers.
"""

import pytest
import httpx

from cosy import create_app
from cosy.extensions import db
from cosy.services import auth_service
from cosy.client import CosyClient, DeviceSession


PUBLIC_KEY = "test-public-key"
PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'PUBLIC_API_KEY': PUBLIC_KEY,
        'SERVICE_ROLE_KEY': 'test-service-role-key',
        'APP_URL': 'https://books.example.com',
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


@pytest.fixture(scope='function')
def make_owner(db_session):
    """Factory: register a user together with a new store they administer."""
    def _make(email: str, store_name: str | None = None, username: str | None = None):
        return auth_service.register_user(
            email, PASSWORD, username=username, store_name=store_name
        )
    return _make


@pytest.fixture(scope='function')
def owner_a(make_owner):
    """Admin of store A."""
    return make_owner("alice@example.com", store_name="Cafe Alpha")


@pytest.fixture(scope='function')
def owner_b(make_owner):
    """Admin of store B, unrelated to store A."""
    return make_owner("bob@example.com", store_name="Bakery Beta")


@pytest.fixture(scope='function')
def sdk(app, db_session):
    """CosyClient wired straight into the Flask app."""
    transport = httpx.WSGITransport(app=app)
    client = CosyClient("http://cosy.test", PUBLIC_KEY, transport=transport)
    yield client
    client.close()


@pytest.fixture(scope='function')
def device():
    return DeviceSession()


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    }, headers={'apikey': PUBLIC_KEY})
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str | None = None) -> dict:
    """Helper to create apikey + Authorization headers."""
    headers = {'apikey': PUBLIC_KEY}
    if token:
        headers['Authorization'] = f'Bearer {token}'
    return headers


@pytest.fixture(scope='function')
def headers_for(client):
    """Factory: signed-in request headers for an existing user."""
    def _headers(email: str | None = None) -> dict:
        return auth_headers(get_auth_token(client, email) if email else None)
    return _headers
