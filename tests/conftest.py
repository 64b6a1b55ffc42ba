"""Pytest configuration and fixtures."""

import os

# Point the application at the test database before anything imports src
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/sentinel_admin", "/sentinel_admin_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL

from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from src.database import Base, engine_options, get_db  # noqa: E402
from src.main import app  # noqa: E402
from src.models import Group, User  # noqa: E402
from src.services.auth import get_password_hash  # noqa: E402
from src.services.identifiers import get_identifier_codec  # noqa: E402

engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_options(SQLALCHEMY_DATABASE_URL))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "password123"


class AuthHeaders(dict):
    """Dict subclass that also stores the logged-in user's email and ids."""

    def __init__(self, *args, email: str = "", user_id: int | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.email = email
        self.user_id = user_id
        self.user_hash = get_identifier_codec().encode(user_id) if user_id is not None else None


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def activation_task():
    """Keep activation notices off the broker."""
    with patch("src.tasks.activation.send_activation_email.delay") as mock_task:
        yield mock_task


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def codec():
    return get_identifier_codec()


@pytest.fixture
def make_user(db):
    """Factory inserting users directly into the database."""

    def _make_user(
        email: str,
        password: str = DEFAULT_PASSWORD,
        activated: bool = True,
        groups: list[Group] | None = None,
    ) -> User:
        user = User(
            email=email,
            password_hash=get_password_hash(password),
            permissions={},
            activated=activated,
            session_version=1,
        )
        user.groups = list(groups or [])
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_group(db):
    """Factory inserting groups directly into the database."""

    def _make_group(name: str, permissions: dict[str, bool] | None = None) -> Group:
        group = Group(name=name, permissions=permissions or {})
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    return _make_group


@pytest.fixture
def admin_group(make_group):
    return make_group("Admins", {"admin": True, "users": True})


@pytest.fixture
def admin_user(make_user, admin_group):
    return make_user("admin@example.com", groups=[admin_group])


@pytest.fixture
def regular_user(make_user):
    return make_user("user@example.com")


def login(client, email: str, password: str = DEFAULT_PASSWORD) -> AuthHeaders:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    data = response.json()
    user_id = get_identifier_codec().decode(data["user"]["id"])
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"}, email=email, user_id=user_id
    )


@pytest.fixture
def admin_headers(client, admin_user):
    """Log in as the admin and return auth headers."""
    return login(client, admin_user.email)


@pytest.fixture
def user_headers(client, regular_user):
    """Log in as a non-admin user and return auth headers."""
    return login(client, regular_user.email)


@pytest.fixture
def login_as(client):
    """Log in as any user and return auth headers."""

    def _login_as(email: str, password: str = DEFAULT_PASSWORD) -> AuthHeaders:
        return login(client, email, password)

    return _login_as
