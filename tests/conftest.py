# tests/conftest.py

import os
import tempfile

# Configure before anything imports src.*; the engine is built at import time.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="eventhive-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ["PAYMENT_GATEWAY"] = "stub"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test_key_secret"
os.environ["TICKET_SIGNING_SECRET"] = "test_ticket_secret"

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_payment_gateway
from src.domain.exceptions import GatewayError
from src.infrastructure.db.models import Base, Event
from src.infrastructure.db.session import SessionLocal, engine
from src.infrastructure.gateways.payment_gateway import StubGateway
from src.main import app

KEY_SECRET = os.environ["RAZORPAY_KEY_SECRET"]


class FakeGateway(StubGateway):
    """Stub gateway with switchable failures."""

    def __init__(self):
        super().__init__(key_id="rzp_test_key", key_secret=KEY_SECRET)
        self.fail_create = False
        self.fail_fetch = False
        self.fetched: list[str] = []

    def create_order(self, amount, currency, receipt, notes):
        if self.fail_create:
            raise GatewayError("Failed to create payment order")
        return super().create_order(amount, currency, receipt, notes)

    def fetch_payment(self, payment_id):
        self.fetched.append(payment_id)
        if self.fail_fetch:
            raise GatewayError("Failed to fetch payment details")
        return super().fetch_payment(payment_id)


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(gateway):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_event():
    def _make_event(
        seats_total: int = 10,
        price: str = "1000.00",
        days_ahead: float = 10,
        title: str = "Indie Music Night",
        location: str = "Phoenix Arena, Bengaluru",
        category: str | None = "Music",
        is_active: bool = True,
        featured: bool = False,
    ) -> str:
        session = SessionLocal()
        try:
            event = Event.create(
                title=title,
                description="Live music",
                category=category,
                date_time=datetime.now(timezone.utc) + timedelta(days=days_ahead),
                location=location,
                price=Decimal(price),
                seats_total=seats_total,
                featured=featured,
            )
            event.is_active = is_active
            session.add(event)
            session.commit()
            return event.id
        finally:
            session.close()

    return _make_event


@pytest.fixture
def load_event():
    def _load_event(event_id: str) -> Event:
        session = SessionLocal()
        try:
            event = session.get(Event, event_id)
            session.expunge(event)
            return event
        finally:
            session.close()

    return _load_event


def _headers(user_id: str, role: str) -> dict:
    return {"X-User-Id": user_id, "X-User-Role": role}


@pytest.fixture
def user_headers():
    return lambda user_id="user-1": _headers(user_id, "user")


@pytest.fixture
def admin_headers():
    return lambda user_id="admin-1": _headers(user_id, "admin")
