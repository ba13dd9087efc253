import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
import os
from datetime import datetime
from uuid import uuid4

from backend.app.models.models import (
    Base, User, Hub, FinancialAccount, TransactionCategory, AccountType
)
from backend.app.database import get_db_session
from backend.app.services.clock import FixedClock, get_clock
from backend.app.main import app

# Use a test database
TEST_DATABASE_URL = "sqlite:///./test.db"

# Fixed "now" used throughout the tests
NOW = datetime(2026, 3, 15, 2, 0, 0)

@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    # Teardown - drop all tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="function")
def db_session(db_engine):
    """Returns a fresh SQLAlchemy session for each test"""
    Session = sessionmaker(bind=db_engine)
    session = Session()

    # Clear out test data from previous run, children first
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()

    yield session
    session.close()

@pytest.fixture
def clock():
    return FixedClock(NOW)

@pytest.fixture
def client(db_session, clock):
    """Test client fixture that uses the db_session fixture and a frozen clock"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

@pytest.fixture
def test_user(db_session):
    """Creates a test user and returns it"""
    user = User(
        id=str(uuid4()),
        email="test@example.com",
        display_name="Test User"
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

@pytest.fixture
def test_hub(db_session, test_user):
    """Creates a test hub owned by the test user"""
    hub = Hub(
        id=str(uuid4()),
        user_id=test_user.id,
        name="Test Hub",
        budget_carry_over=False
    )
    db_session.add(hub)
    db_session.commit()
    db_session.refresh(hub)
    return hub

@pytest.fixture
def test_account(db_session, test_hub, test_user):
    """Creates a checking account with a 5000 balance"""
    account = FinancialAccount(
        id=str(uuid4()),
        hub_id=test_hub.id,
        user_id=test_user.id,
        name="Test Checking Account",
        type=AccountType.CHECKING,
        balance=5000.0
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account

@pytest.fixture
def savings_account(db_session, test_hub, test_user):
    """Creates an empty savings account"""
    account = FinancialAccount(
        id=str(uuid4()),
        hub_id=test_hub.id,
        user_id=test_user.id,
        name="Test Savings Account",
        type=AccountType.SAVINGS,
        balance=0.0
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account

@pytest.fixture
def test_category(db_session, test_hub):
    """Creates a transaction category"""
    category = TransactionCategory(
        id=str(uuid4()),
        hub_id=test_hub.id,
        name="Groceries"
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category
