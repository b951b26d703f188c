# stratguru/tests/conftest.py
"""
Pytest configuration and fixtures for StratGuru backend tests.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stratguru.db.session import Base
from stratguru.db import models  # noqa: F401
from stratguru.middleware.rate_limiter import rate_limiter


# Test database URL (in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_session():
    """Create a test database session."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_user_id():
    """Generate a test user ID."""
    return "test-user-123"


@pytest.fixture(scope="function")
def mock_env_vars(monkeypatch):
    """Set up mock environment variables for testing."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
    monkeypatch.setenv("PAYSTACK_SECRET_KEY", "test-paystack-secret")
    monkeypatch.setenv("NOWPAYMENTS_API_KEY", "test-nowpayments-key")
    monkeypatch.setenv("NOWPAYMENTS_IPN_SECRET", "test-ipn-secret")


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """The limiter is process-wide; start every test with empty windows."""
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def client(db_session):
    """Test client with the request session bound to the test database."""
    from fastapi.testclient import TestClient
    from stratguru.main import create_app
    from stratguru.db.session import get_db

    app = create_app()

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def test_user(db_session):
    """Create a free-plan test user."""
    from stratguru.db import crud
    from stratguru.utils.auth import hash_password

    return crud.create_user(
        db_session,
        email="trader@example.com",
        password_hash=hash_password("correct-horse-1"),
        full_name="Test Trader",
    )


@pytest.fixture
def auth_headers(test_user):
    """Bearer header for test_user."""
    from stratguru.services.jwt_service import create_access_token

    return {"Authorization": f"Bearer {create_access_token(test_user.id, test_user.email)}"}
