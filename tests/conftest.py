import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENABLE_SCHEDULER", "false")
os.environ.setdefault("RESEND_API_KEY", "")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eventpay.auth import create_access_token
from eventpay.config import EventConfig, get_event_config
from eventpay.db import Base, get_db
from eventpay.main import app
from eventpay.models.profile import Profile
from eventpay.models.user import User

TEST_EVENT_CONFIG = EventConfig(
    event_name="Summer Weekend 2026",
    currency="GBP",
    bank_account_name="Event Fund",
    bank_account_number="12345678",
    bank_sort_code="12-34-56",
    dashboard_url="https://events.example.com/dashboard",
    admin_emails=["organiser@example.com"],
)


@pytest.fixture
def db_session():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def event_config():
    return TEST_EVENT_CONFIG


def _client_for(db_session, user=None):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_config] = lambda: TEST_EVENT_CONFIG
    test_client = TestClient(app)
    if user is not None:
        # sub must be string
        token = create_access_token(data={"sub": str(user.id)})
        test_client.headers["Authorization"] = f"Bearer {token}"
        test_client.test_user = user
    return test_client


@pytest.fixture
def client(db_session):
    """Create an unauthenticated test client with database session override."""
    with _client_for(db_session) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(db_session):
    """Create a test client for a user whose profile is flagged as admin."""
    admin_user = User(email="admin@example.com")
    db_session.add(admin_user)
    db_session.commit()
    db_session.refresh(admin_user)

    db_session.add(
        Profile(
            user_id=admin_user.id,
            full_name="Admin User",
            email=admin_user.email,
            is_admin=True,
            total_due=0,
        )
    )
    db_session.commit()

    with _client_for(db_session, admin_user) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def guest_client(db_session):
    """Create a test client for a guest with a linked profile and an outstanding balance."""
    guest_user = User(email="guest@example.com")
    db_session.add(guest_user)
    db_session.commit()
    db_session.refresh(guest_user)

    profile = Profile(
        user_id=guest_user.id,
        full_name="Gail Guest",
        email=guest_user.email,
        total_due=500,
        initial_confirmed_paid=0,
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)

    with _client_for(db_session, guest_user) as test_client:
        test_client.test_profile = profile
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def organiser_client(db_session):
    """Create a test client for an allowlisted organiser with no profile."""
    organiser = User(email="Organiser@Example.com")
    db_session.add(organiser)
    db_session.commit()
    db_session.refresh(organiser)

    with _client_for(db_session, organiser) as test_client:
        yield test_client
    app.dependency_overrides.clear()
