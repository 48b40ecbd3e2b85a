"""Shared test fixtures for the webhook test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- sign: builds a valid Stripe-Signature header for a payload
"""

import time

import pytest

from authorpage import create_app
from authorpage.extensions import db as _db
from authorpage.services.webhook_signature import generate_signature_header

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def sign():
    """Return a helper that signs a payload with the test secret.

    sign(payload)                -> header stamped with the current time
    sign(payload, timestamp=123) -> header stamped with a fixed time
    """

    def _sign(payload, timestamp=None, secret=WEBHOOK_SECRET):
        if timestamp is None:
            timestamp = int(time.time())
        return generate_signature_header(secret, payload, timestamp)

    return _sign
