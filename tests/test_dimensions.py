"""Tests for lookup-or-create dimension resolution."""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from persona_feed.db.models import InterestModel, PlatformModel
from persona_feed.domain.errors import StorageError
from persona_feed.services.dimensions import (
    DimensionResolver,
    interest_resolver,
    platform_resolver,
)


def _count(session, model, name: str) -> int:
    return session.execute(
        select(func.count()).select_from(model).where(model.name == name)
    ).scalar_one()


def test_resolve_creates_missing_label(session) -> None:
    """An unseen label gets a new row."""
    platform_id = platform_resolver(session).resolve("Snapchat")

    assert platform_id is not None
    assert _count(session, PlatformModel, "Snapchat") == 1


def test_resolve_reuses_existing_label(session) -> None:
    """Resolving the same label twice returns one id and one row."""
    resolver = interest_resolver(session)

    first = resolver.resolve("Gaming")
    second = resolver.resolve("Gaming")

    assert first == second
    assert _count(session, InterestModel, "Gaming") == 1


def test_resolve_is_case_sensitive(session) -> None:
    """Labels differing only in case are distinct rows."""
    resolver = platform_resolver(session)

    assert resolver.resolve("TikTok") != resolver.resolve("tiktok")


def test_resolve_returns_winner_after_insert_race(session) -> None:
    """A unique-constraint clash on insert re-reads and returns the existing id."""
    existing = PlatformModel(name="Instagram")
    session.add(existing)
    session.flush()

    resolver = DimensionResolver(session, PlatformModel)
    # First lookup misses (the other writer has not committed yet), the re-read finds it
    with patch.object(resolver, "_lookup", side_effect=[None, existing.id]):
        resolved = resolver.resolve("Instagram")

    assert resolved == existing.id
    assert _count(session, PlatformModel, "Instagram") == 1


def test_resolve_wraps_storage_failures(session) -> None:
    """Driver errors surface as StorageError."""
    resolver = platform_resolver(session)

    with patch.object(
        session,
        "execute",
        side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
    ):
        with pytest.raises(StorageError):
            resolver.resolve("YouTube")
