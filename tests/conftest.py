"""
Shared test fixtures.

Sets up an isolated SQLite test database so tests never touch
the real database. Tables are created before and dropped after
every test, with roles seeded in between.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from bank_ledger.api.deps import get_password_hasher, get_token_issuer
from bank_ledger.main import app
from bank_ledger.models.base import Base, get_db
from bank_ledger.models.enums import AccountType, RoleName
from bank_ledger.security.hashing import PasswordHasher
from bank_ledger.security.tokens import TokenIssuer
from bank_ledger.services.account_service import AccountService
from bank_ledger.services.user_service import UserService


TEST_DATABASE_URL = "sqlite:///./test.db"
TEST_JWT_SECRET = "test-secret"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class FrozenClock:
    """A clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables and seed roles before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        UserService(session, PasswordHasher(rounds=4)).seed_roles()
        session.commit()
    finally:
        session.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def hasher():
    # Minimum cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 3, 1, 12, 0, 0))


@pytest.fixture
def token_issuer():
    return TokenIssuer(secret=TEST_JWT_SECRET, ttl_minutes=60)


@pytest.fixture
def client(db_session, hasher, token_issuer):
    """
    Provide a test client bound to the test database.

    get_db is overridden so the app uses the test session, and
    the security helpers are swapped for fast, fixed ones.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- Data helpers ---

def make_user(db_session, hasher, username, roles=(RoleName.CUSTOMER,), password="secret123"):
    user = UserService(db_session, hasher).create_user(
        username, f"{username}@example.com", password, list(roles)
    )
    db_session.commit()
    return user


def make_active_account(db_session, user, account_type=AccountType.SAVINGS):
    service = AccountService(db_session)
    account = service.create_account(user.id, account_type)
    service.approve_account(account.id)
    db_session.commit()
    return account


@pytest.fixture
def user_factory(db_session, hasher):
    def factory(username, roles=(RoleName.CUSTOMER,), password="secret123"):
        return make_user(db_session, hasher, username, roles, password)
    return factory


@pytest.fixture
def customer_factory(db_session, hasher):
    """Create a customer with an approved, empty account."""
    def factory(username):
        user = make_user(db_session, hasher, username)
        account = make_active_account(db_session, user)
        return user, account
    return factory
