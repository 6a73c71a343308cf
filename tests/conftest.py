import os

# Settings are read at import time, so configure them before importing the app.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_ON_STARTUP", "false")

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from movie_catalog import main  # noqa: E402
from movie_catalog.database import Base, get_db  # noqa: E402
from movie_catalog.main import app  # noqa: E402
from movie_catalog.models import Movie  # noqa: E402

# In-memory SQLite database shared across connections via StaticPool.
engine_test = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine_test,
)


@pytest.fixture()
def db_session():
    """Fresh schema and session for every test."""
    Base.metadata.drop_all(bind=engine_test)
    Base.metadata.create_all(bind=engine_test)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def session_factory(db_session):
    """Session factory bound to the freshly reset test database."""
    return TestingSessionLocal


@pytest.fixture()
def client_factory(session_factory, monkeypatch):
    """Build TestClients against the in-memory database.

    Keyword arguments override fields of the shared settings object for the
    duration of the test; ``raise_server_exceptions`` is passed through to
    the TestClient.
    """
    opened = []

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def _make(raise_server_exceptions: bool = True, **overrides) -> TestClient:
        for name, value in overrides.items():
            monkeypatch.setattr(main.settings, name, value)
        # Startup seeding goes to the test database too.
        monkeypatch.setattr(main, "SessionLocal", session_factory)
        app.dependency_overrides[get_db] = override_get_db

        test_client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        test_client.__enter__()
        opened.append(test_client)
        return test_client

    yield _make

    for test_client in opened:
        test_client.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture()
def client(client_factory):
    """TestClient whose requests use the in-memory database."""
    return client_factory()


@pytest.fixture()
def movie_factory(db_session):
    """Create movies directly in the database with controllable timestamps."""
    base_time = datetime(2024, 1, 1, 12, 0, 0)

    def _create_movie(title: str, year: int = 2000, minutes: int = 0, **fields) -> Movie:
        movie = Movie(
            title=title,
            year=year,
            genre=fields.pop("genre", "Drama"),
            director=fields.pop("director", "Someone"),
            created_at=base_time + timedelta(minutes=minutes),
            **fields,
        )
        db_session.add(movie)
        db_session.commit()
        db_session.refresh(movie)
        return movie

    return _create_movie


@pytest.fixture()
def signup_payload():
    return {
        "fullName": "Ada Lovelace",
        "email": "ada@example.com",
        "password": "secret1",
        "confirmPassword": "secret1",
    }
