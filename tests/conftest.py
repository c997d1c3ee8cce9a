"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["FEED_PUBLISHED_ONLY"] = "false"


@pytest.fixture
def db_engine() -> Generator[Any, None, None]:
    """Fresh schema on the shared in-memory SQLite engine."""
    from persona_feed.db.models import Base
    from persona_feed.db.session import engine

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture
def session(db_engine) -> Generator[Any, None, None]:
    """A session on the test database."""
    from persona_feed.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def test_client(db_engine) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from persona_feed.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def seed(db_engine) -> dict[str, int]:
    """Two companies (one inactive), an author, two personas and three platforms."""
    from persona_feed.db.models import CompanyModel, PersonaModel, PlatformModel, UserModel
    from persona_feed.db.session import get_session_context

    with get_session_context() as db:
        acme = CompanyModel(name="Acme")
        globex = CompanyModel(name="Globex", status="inactive")
        db.add_all([acme, globex])
        db.flush()

        author = UserModel(name="Ada Author", email="ada@example.com", company_id=acme.id)
        gamers = PersonaModel(name="Gamers", company_id=acme.id)
        parents = PersonaModel(name="Parents", company_id=acme.id)
        tiktok = PlatformModel(name="TikTok")
        instagram = PlatformModel(name="Instagram")
        youtube = PlatformModel(name="YouTube")
        db.add_all([author, gamers, parents, tiktok, instagram, youtube])
        db.flush()

        return {
            "acme": acme.id,
            "globex": globex.id,
            "author": author.id,
            "gamers": gamers.id,
            "parents": parents.id,
            "tiktok": tiktok.id,
            "instagram": instagram.id,
            "youtube": youtube.id,
        }
