"""
Shared fixtures: an in-memory SQLite database per test, factories for users
and tests, and a FastAPI TestClient bound to the same session.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOG_FILE", "logs/test.log")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from examportal.core.database import Base, SessionLocal, engine, get_db  # noqa: E402
from examportal.core.security import jwt_manager  # noqa: E402
from examportal.models.user import ROLE_ADMIN, ROLE_STUDENT, ROLE_TEACHER  # noqa: E402
from examportal.schemas.test import TestCreate  # noqa: E402
from examportal.services.rubric import RubricService  # noqa: E402
from examportal.services.user import UserService  # noqa: E402


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def question_payload(text="What is 2 + 2?", points=1, correct=0):
    return {
        "question_text": text,
        "points": points,
        "options": [
            {"option_text": f"Option {i + 1}", "is_correct": i == correct}
            for i in range(4)
        ],
    }


def build_test_payload(title="Algebra basics", passing_score=60, weights=(1,), **extra):
    payload = {
        "title": title,
        "subject": "Mathematics",
        "exam_standard": "GCSE",
        "difficulty": "Easy",
        "time_limit_minutes": 30,
        "passing_score": passing_score,
        "questions": [
            question_payload(text=f"Question {i + 1}", points=w)
            for i, w in enumerate(weights)
        ],
    }
    payload.update(extra)
    return payload


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(role=ROLE_STUDENT, username=None):
        counter["n"] += 1
        name = username or f"{role}{counter['n']}"
        return UserService(db_session).create_user(
            username=name, email=f"{name}@example.com", role=role
        )

    return _make


@pytest.fixture
def student(make_user):
    return make_user(ROLE_STUDENT)


@pytest.fixture
def teacher(make_user):
    return make_user(ROLE_TEACHER)


@pytest.fixture
def admin(make_user):
    return make_user(ROLE_ADMIN)


@pytest.fixture
def make_test(db_session, teacher):
    """Create a published test; the first option of each question is correct."""

    def _make(weights=(1,), passing_score=60, published=True, author=None, **extra):
        service = RubricService(db_session)
        test_in = TestCreate(
            **build_test_payload(weights=weights, passing_score=passing_score, **extra)
        )
        test = service.create_test(test_in, author or teacher)
        if published:
            service.set_published(test.id, True, author or teacher)
        return service.tests.get_test_with_questions(test.id)

    return _make


def correct_option(question):
    return next(opt for opt in question.options if opt.is_correct)


def wrong_option(question):
    return next(opt for opt in question.options if not opt.is_correct)


def auth_headers(user):
    return {"Authorization": f"Bearer {jwt_manager.create_access_token(user)}"}


@pytest.fixture
def client(db_session):
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
