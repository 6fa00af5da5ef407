import os

# Must be set before the application (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from product_catalog.main import app
from product_catalog.database import Base, get_db


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "Passw0rd!"


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


def login_headers(client, username, roles):
    """Register a user with the given roles and return its Authorization header."""
    response = client.post(
        "/api/Auth/Register",
        json={"username": username, "password": PASSWORD, "roles": roles}
    )
    assert response.status_code == 200

    response = client.post(
        "/api/Auth/Login",
        json={"username": username, "password": PASSWORD}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['jwtToken']}"}


@pytest.fixture
def reader_headers(client):
    return login_headers(client, "reader@example.com", ["Reader"])


@pytest.fixture
def writer_headers(client):
    return login_headers(client, "writer@example.com", ["Writer"])


@pytest.fixture
def headers(client):
    """Headers for a user holding both roles."""
    return login_headers(client, "editor@example.com", ["Reader", "Writer"])
