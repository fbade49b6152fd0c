"""Shared test fixtures for the linkjar test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: a creator account + profile with the tip jar on, a creator
  with the tip jar off, and an admin
- post_webhook: POST a correctly signed Stripe event to /stripe/webhooks
"""

import json

import pytest
from werkzeug.security import generate_password_hash

from linkjar import create_app
from linkjar.extensions import db as _db
from linkjar.models.account import Account
from linkjar.models.profile import Profile
from stripe_helpers import WEBHOOK_SECRET, sign_payload


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
def seed_data(app, db_session):
    """Seed the database with two creators and an admin.

    Returns a dict of plain IDs so tests can use them across app contexts.
    """
    creator = Account(
        email="creator@test.com",
        username="creator",
        password_hash=generate_password_hash("creatorpass123"),
        stripe_session_id="cs_seed_creator",
    )
    creator.profile = Profile(
        display_name="The Creator",
        tip_jar_enabled=True,
        tip_jar_message="Buy me a coffee",
    )
    _db.session.add(creator)

    closed = Account(
        email="closed@test.com",
        username="closed_jar",
        password_hash=generate_password_hash("closedpass123"),
        stripe_session_id="cs_seed_closed",
    )
    closed.profile = Profile(display_name="closed_jar", tip_jar_enabled=False)
    _db.session.add(closed)

    admin = Account(
        email="admin@linkjar.local",
        username="operator",
        password_hash=generate_password_hash("admin123"),
        is_admin=True,
    )
    admin.profile = Profile(display_name="operator", is_active=False)
    _db.session.add(admin)

    _db.session.commit()

    return {
        "creator_id": creator.id,
        "profile_id": creator.profile.id,
        "closed_profile_id": closed.profile.id,
        "admin_id": admin.id,
    }


@pytest.fixture
def post_webhook(client):
    """POST an event to the webhook endpoint with a valid signature."""

    def _post(event, secret=WEBHOOK_SECRET, signature=None):
        payload = json.dumps(event).encode("utf-8")
        headers = {"Stripe-Signature": signature or sign_payload(payload, secret)}
        return client.post(
            "/stripe/webhooks",
            data=payload,
            content_type="application/json",
            headers=headers,
        )

    return _post
