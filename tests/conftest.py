import os
from datetime import timedelta

# settings are read at import time, so the environment has to be ready first
os.environ.setdefault("ENV", "test")
os.environ.setdefault("APP_URL", "https://payview.test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("IDENTITY_PROVIDER_URL", "https://idp.payview.test")
os.environ.setdefault("IDENTITY_PROVIDER_KEY", "test-jwt-secret-with-enough-length")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_payview")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_payview")
os.environ.setdefault("STORAGE_BUCKET", "uploads")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from payview.database import get_session
from payview.dependencies.services import get_gateway, get_purchase_notifier, get_storage_client
from payview.main import app
from payview.models import Profile
from payview.services.access_ledger import AccessLedger
from payview.utils import clock

from helpers import (
    BUYER_ID,
    CREATOR_ID,
    SELLER_ACCOUNT,
    FakeGateway,
    FakeStorage,
    Recorder,
    make_file,
)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def ledger(session):
    return AccessLedger(session)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def notifier():
    return Recorder()


@pytest.fixture
def creator(session):
    profile = Profile(
        user_id=CREATOR_ID,
        email="creator@example.com",
        username="creator",
        is_creator=True,
        stripe_account_id=SELLER_ACCOUNT,
        stripe_onboarding_complete=True,
    )
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture
def buyer_profile(session):
    profile = Profile(user_id=BUYER_ID, email="buyer@example.com", username="buyer")
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture
def paid_file(session, creator):
    return make_file(session)


@pytest.fixture
def pending(ledger, paid_file):
    """A pending purchase of `paid_file` by BUYER_ID, as checkout leaves it."""
    return ledger.create_pending_transaction(
        file=paid_file,
        buyer_id=BUYER_ID,
        buyer_email="buyer@example.com",
        amount_cents=1000,
        platform_fee_cents=50,
        stripe_session_id="cs_test_pending",
    )


@pytest.fixture
def client(engine, gateway, storage, notifier):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_storage_client] = lambda: storage
    app.dependency_overrides[get_purchase_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def frozen_clock(monkeypatch):
    """Controllable clock; move it with frozen_clock.advance(timedelta)."""

    class FrozenClock:
        def __init__(self):
            self.now = clock.utcnow().replace(microsecond=0)

        def __call__(self):
            return self.now

        def advance(self, delta: timedelta):
            self.now = self.now + delta

    frozen = FrozenClock()
    monkeypatch.setattr(clock, "utcnow", frozen)
    return frozen
