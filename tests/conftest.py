from datetime import timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from taskmanager.config import Settings
from taskmanager.main import create_app
from taskmanager.models import Task, User, UserRole
from taskmanager.security import create_access_token, get_password_hash

DEFAULT_PASSWORD = "secret123"
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        JWT_SECRET_KEY="test-secret-key",
        UPLOAD_PATH=str(tmp_path / "uploads"),
        ENVIRONMENT="test",
        RATE_LIMIT_MAX_REQUESTS=10_000,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session(app, client) -> Session:
    session = app.state.db.session()
    try:
        yield session
    finally:
        session.close()


def make_user(session: Session, email: str, role: UserRole = UserRole.USER, password: str = DEFAULT_PASSWORD) -> User:
    user = User(email=email, password_hash=get_password_hash(password), role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_task(session: Session, creator: User, title: str = "Task", assignee: Optional[User] = None, **fields) -> Task:
    task = Task(title=title, created_by=creator.id, assigned_to=assignee.id if assignee else None, **fields)
    session.add(task)
    session.commit()
    session.refresh(task)
    return task


def token_for(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token(user.id, settings, expires_delta=expires_delta)


def auth_headers(user: User, settings: Settings) -> dict:
    return {"Authorization": f"Bearer {token_for(user, settings)}"}


@pytest.fixture
def alice(db_session) -> User:
    return make_user(db_session, "alice@example.com")


@pytest.fixture
def bob(db_session) -> User:
    return make_user(db_session, "bob@example.com")


@pytest.fixture
def admin(db_session) -> User:
    return make_user(db_session, "admin@example.com", role=UserRole.ADMIN)
