import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth.security import hash_password, issue_access_token
from database.database import Base, get_db
from database.models import Subject, Topic, User, UserRole
from prep_api import app
from routers.ai import get_generation_client, get_session_factory
from tests.helpers import FakeGenerationClient

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_client():
    return FakeGenerationClient()


@pytest.fixture
def client(db_session, fake_client):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_generation_client] = lambda: fake_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _make_user(db, email, role):
    user = User(
        email=email,
        hashed_password=hash_password("secret123"),
        full_name=email.split("@")[0],
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    return _make_user(db_session, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def student_user(db_session):
    return _make_user(db_session, "student@example.com", UserRole.STUDENT)


def auth_header(user):
    return {"Authorization": f"Bearer {issue_access_token(user.id, user.role.value)}"}


@pytest.fixture
def admin_headers(admin_user):
    return auth_header(admin_user)


@pytest.fixture
def student_headers(student_user):
    return auth_header(student_user)


@pytest.fixture
def topic(db_session):
    subject = Subject(name="Pakistan Affairs")
    db_session.add(subject)
    db_session.commit()
    t = Topic(subject_id=subject.id, name="Ideology of Pakistan")
    db_session.add(t)
    db_session.commit()
    db_session.refresh(t)
    return t


@pytest.fixture
def session_factory(db_session):
    return TestingSessionLocal
