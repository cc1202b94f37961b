"""Pytest fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from safecircle.client.local_queue import LocalQueue
from safecircle.core.deps import get_card_gateway, get_money_unify
from safecircle.core.errors import UpstreamProviderError
from safecircle.db.base import Base
from safecircle.db.session import get_db
from safecircle.main import app
from safecircle.models import CircleMember, PaymentLedgerEntry, SosRecord, UserProfile  # noqa: F401 - register for create_all

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeMoneyUnify:
    """Stands in for MoneyUnifyClient."""

    def __init__(self):
        self.requests: list[tuple[str, str]] = []
        self.verifications: list[str] = []
        self.next_transaction_id = "tx-100"
        self.verify_body: dict = {"status": "SUCCESSFUL"}
        self.fail = False

    def request_payment(self, phone, amount):
        if self.fail:
            raise UpstreamProviderError("provider down")
        self.requests.append((phone, amount))
        return {"transaction_id": self.next_transaction_id, "message": "Request sent"}

    def verify_payment(self, transaction_id):
        if self.fail:
            raise UpstreamProviderError("provider down")
        self.verifications.append(transaction_id)
        return dict(self.verify_body)


class FakeCardGateway:
    def __init__(self):
        self.intents: list[tuple] = []
        self.fail = False

    def create_payment_intent(self, amount, currency):
        if self.fail:
            raise UpstreamProviderError("gateway down")
        self.intents.append((amount, currency))
        n = len(self.intents)
        return {"id": f"pi_{n}", "client_secret": f"pi_{n}_secret", "status": "requires_payment_method"}


@pytest.fixture
def setup_db():
    """Fresh tables per test."""
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(setup_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def money_unify(setup_db):
    fake = FakeMoneyUnify()
    app.dependency_overrides[get_money_unify] = lambda: fake
    return fake


@pytest.fixture
def card_gateway(setup_db):
    fake = FakeCardGateway()
    app.dependency_overrides[get_card_gateway] = lambda: fake
    return fake


@pytest.fixture
def client(setup_db):
    """Test client with overridden DB."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def queue(tmp_path):
    """Device queue on a real SQLite file."""
    return LocalQueue.open(f"sqlite:///{tmp_path / 'device.db'}")
