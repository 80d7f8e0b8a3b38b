"""
Pytest configuration and shared fixtures for the cinelog API tests.
In-memory SQLite database, FastAPI test client, auth helpers and seed data.
"""

import os

# Configure before any cinelog import reads the environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TMDB_API_KEY"] = ""
os.environ["REDIS_URL"] = ""
os.environ["MONITORING_ENABLED"] = "true"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["ENVIRONMENT"] = "test"

from typing import Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cinelog.core.auth import create_access_token
from cinelog.db import Base, get_db
from cinelog.main import app
from cinelog.models import Movie, User

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# -------------------------------------------------------------------
# Database
# -------------------------------------------------------------------

@pytest.fixture(autouse=True)
def reset_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

# -------------------------------------------------------------------
# Seed data
# -------------------------------------------------------------------

@pytest.fixture
def users(db_session) -> List[User]:
    alice = User(email="alice@example.com", name="Alice")
    bob = User(email="bob@example.com", name="Bob")
    db_session.add_all([alice, bob])
    db_session.commit()
    return [alice, bob]


def make_movie(db_session, tmdb_id: int, title: str, media_type: str = "movie", **fields) -> Movie:
    movie = Movie(tmdb_id=tmdb_id, title=title, media_type=media_type, **fields)
    db_session.add(movie)
    db_session.commit()
    db_session.refresh(movie)
    return movie


@pytest.fixture
def movies(db_session) -> List[Movie]:
    titles = [
        (27205, "Inception", "movie"),
        (155, "The Dark Knight", "movie"),
        (157336, "Interstellar", "movie"),
        (1396, "Breaking Bad", "tv"),
        (603, "The Matrix", "movie"),
    ]
    return [make_movie(db_session, tmdb_id, title, media_type) for tmdb_id, title, media_type in titles]

# -------------------------------------------------------------------
# Auth helpers
# -------------------------------------------------------------------

def token_for(user_id: int) -> str:
    return create_access_token({"sub": str(user_id)})


def auth_headers(user_id: int) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user_id)}"}


@pytest.fixture
def movie_factory(db_session):
    def factory(tmdb_id: int, title: str, media_type: str = "movie", **fields) -> Movie:
        return make_movie(db_session, tmdb_id, title, media_type, **fields)
    return factory


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def alice_headers(users) -> Dict[str, str]:
    return auth_headers(users[0].id)


@pytest.fixture
def bob_headers(users) -> Dict[str, str]:
    return auth_headers(users[1].id)
