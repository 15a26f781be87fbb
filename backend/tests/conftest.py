"""
Test configuration and fixtures for the task API tests.

Provides:
- Test database with SQLite in-memory for speed
- FastAPI test client with database dependency override
- Authentication helpers (issued and recorded bearer tokens)
- Common fixtures for users, teams, projects and tasks
"""

import os
import sys
import logging
from typing import Generator, Dict

# Must be set before the application modules are imported
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, get_db, enable_sqlite_foreign_keys
from main import app
import models
from auth.routes import issue_token
from auth.security import hash_password

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

# SQLite in-memory database for fast testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """
    Create a fresh in-memory SQLite database for each test.

    This ensures test isolation and fast execution.
    """
    logger.debug("Creating test database")

    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        logger.debug("Test database cleaned up")


@pytest.fixture(scope="function")
def client(test_db: Session) -> TestClient:
    """
    Create FastAPI test client with database dependency override.
    """
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(db: Session, name: str, email: str, password: str) -> models.User:
    user = models.User(name=name, email=email, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created user {email} with ID: {user.id}")
    return user


def create_auth_token(user: models.User, db: Session) -> str:
    """
    Helper to issue and record a bearer token for a user.

    Args:
        user: User to create token for
        db: Session the token record is stored through

    Returns:
        Bearer token string
    """
    logger.debug(f"Creating auth token for user {user.id}")
    token = issue_token(user, db)
    db.commit()
    return token


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def user(test_db: Session) -> models.User:
    """The principal most tests act as."""
    return make_user(test_db, "Owner User", "owner@test.com", "owner123")


@pytest.fixture(scope="function")
def another_user(test_db: Session) -> models.User:
    """
    Create another user for testing cross-tenant scenarios.
    """
    return make_user(test_db, "Another User", "another@test.com", "another123")


@pytest.fixture(scope="function")
def auth_headers(test_db: Session, user: models.User) -> Dict[str, str]:
    return auth_header(create_auth_token(user, test_db))


@pytest.fixture(scope="function")
def another_user_auth_headers(test_db: Session, another_user: models.User) -> Dict[str, str]:
    return auth_header(create_auth_token(another_user, test_db))


@pytest.fixture(scope="function")
def team(test_db: Session, user: models.User) -> models.Team:
    """
    Create a test team owned by `user`.
    """
    team = models.Team(name="Test Team", user_id=user.id)
    test_db.add(team)
    test_db.commit()
    test_db.refresh(team)
    logger.info(f"Created test team with ID: {team.id}")
    return team


@pytest.fixture(scope="function")
def foreign_team(test_db: Session, another_user: models.User) -> models.Team:
    """
    Create a team owned by `another_user`.
    """
    team = models.Team(name="Foreign Team", user_id=another_user.id)
    test_db.add(team)
    test_db.commit()
    test_db.refresh(team)
    return team


@pytest.fixture(scope="function")
def project(test_db: Session, team: models.Team) -> models.Project:
    project = models.Project(name="Test Project", team_id=team.id)
    test_db.add(project)
    test_db.commit()
    test_db.refresh(project)
    return project


@pytest.fixture(scope="function")
def foreign_project(test_db: Session, foreign_team: models.Team) -> models.Project:
    project = models.Project(name="Foreign Project", team_id=foreign_team.id)
    test_db.add(project)
    test_db.commit()
    test_db.refresh(project)
    return project


def make_task(
    db: Session,
    project_id: int,
    name: str = "Test Task",
    status: models.TaskStatus = models.TaskStatus.pending,
) -> models.Task:
    task = models.Task(project_id=project_id, name=name, status=status)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@pytest.fixture(scope="function")
def task(test_db: Session, project: models.Project) -> models.Task:
    return make_task(test_db, project.id, "Write docs", models.TaskStatus.in_progress)
