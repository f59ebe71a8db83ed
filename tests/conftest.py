"""
Pytest configuration.

Settings are read at import time, so the environment is prepared before any
application module is imported. MongoDB is replaced by mongomock and outbound
email by a mock of resend.Emails.send.
"""

import os
import sys
import unittest.mock

os.environ["ACCESS_TOKEN_SECRET"] = "test-secret-for-session-tokens-only"
os.environ["ENVIRONMENT"] = "development"
os.environ["EMAIL_PROVIDER"] = "resend"
os.environ["RESEND_API_KEY"] = "re_test"

global_resend_mock = unittest.mock.patch("resend.Emails.send")
mocked_send = global_resend_mock.start()
mocked_send.return_value = {"id": "test-email-id"}

# Make the top-level modules importable when running from a checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import issue_token
from database import get_db, utcnow
from main import app, get_payment_gateway
from payments import PaymentGateway


@pytest.fixture
def db():
    return mongomock.MongoClient(tz_aware=True)["stayvista_test"]


@pytest.fixture
def gateway():
    return unittest.mock.Mock(spec=PaymentGateway)


@pytest.fixture
def client(db, gateway):
    mocked_send.reset_mock(side_effect=True)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    # No context manager: the lifespan would open a real MongoDB connection.
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def sent_emails():
    return mocked_send


def auth_headers(email):
    return {"Authorization": f"Bearer {issue_token({'email': email})}"}


def make_user(db, email, role="guest", status="none"):
    db["user"].insert_one({"email": email, "role": role, "status": status, "created_at": utcnow()})
    return auth_headers(email)


@pytest.fixture
def admin_headers(db):
    return make_user(db, "admin@x.com", role="admin")


@pytest.fixture
def host_headers(db):
    return make_user(db, "h@x.com", role="host")


@pytest.fixture
def guest_headers(db):
    return make_user(db, "g@x.com", role="guest")


def room_payload(**overrides):
    payload = {
        "title": "Cabin by the lake",
        "category": "Lake",
        "price": 100,
        "location": "Tahoe",
        "host": {"email": "h@x.com", "name": "Hana"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def room(db):
    room_id = db["room"].insert_one(
        {**room_payload(), "booked": False, "created_at": utcnow()}
    ).inserted_id
    return str(room_id)


def booking_payload(room_id, **overrides):
    payload = {
        "room_id": room_id,
        "guest": {"email": "g@x.com", "name": "Gus"},
        "price": 100,
        "transaction_id": "pi_123",
        "date": "2024-03-05T00:00:00Z",
        "title": "Cabin by the lake",
    }
    payload.update(overrides)
    return payload
