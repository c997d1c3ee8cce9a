"""Tests for the feed API client."""

import json

import httpx
import pytest

from persona_feed.client.api import FeedApiClient, FeedEmptyError, FeedFetchError
from persona_feed.domain.enums import ContentStatus
from persona_feed.domain.errors import InvalidEngagementType


def feed_row(row_id: int, **overrides) -> dict:
    row = {
        "id": row_id,
        "title": f"Clip {row_id}",
        "description": None,
        "type": "video",
        "status": "published",
        "content_url": f"https://cdn.example.com/{row_id}.mp4",
        "thumbnail_url": None,
        "company_id": 1,
        "author_id": 1,
        "author_name": "Ada Author",
        "scheduled_date": None,
        "publish_date": "2026-01-03T00:00:00",
        "views": 0,
        "likes": 0,
        "comments": 0,
        "shares": 0,
        "created_at": None,
        "updated_at": None,
        "platform_names": ["TikTok"],
        "personas": [{"id": 1, "name": "Gamers"}],
    }
    row.update(overrides)
    return row


def _client(handler) -> FeedApiClient:
    return FeedApiClient(
        base_url="http://feed.test/api/v1",
        user_id=7,
        transport=httpx.MockTransport(handler),
    )


class TestFetchFeed:
    @pytest.mark.asyncio
    async def test_returns_rows(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"items": [feed_row(2), feed_row(1)], "total": 2, "message": None})

        async with _client(handler) as client:
            rows = await client.fetch_feed(1, 3)

        assert seen[0].url.path == "/api/v1/content/persona/1/company/3"
        assert seen[0].headers["X-User-Id"] == "7"
        assert [row.id for row in rows] == [2, 1]
        assert rows[0].status == ContentStatus.PUBLISHED
        assert rows[0].platform_names == ["TikTok"]
        assert rows[0].personas[0].name == "Gamers"

    @pytest.mark.asyncio
    async def test_empty_feed_raises_empty_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"items": [], "total": 0, "message": "No content found for that persona & company"},
            )

        async with _client(handler) as client:
            with pytest.raises(FeedEmptyError, match="No content found"):
                await client.fetch_feed(1, 3)

    @pytest.mark.asyncio
    async def test_server_error_raises_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"detail": "Error retrieving content"})

        async with _client(handler) as client:
            with pytest.raises(FeedFetchError) as exc_info:
                await client.fetch_feed(1, 3)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_connection_error_raises_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(FeedFetchError):
                await client.fetch_feed(1, 3)

    @pytest.mark.asyncio
    async def test_malformed_body_raises_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"rows": []})

        async with _client(handler) as client:
            with pytest.raises(FeedFetchError, match="Malformed"):
                await client.fetch_feed(1, 3)


class TestRecordEngagement:
    @pytest.mark.asyncio
    async def test_posts_type(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/content/5/metrics"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"message": "view recorded successfully"})

        async with _client(handler) as client:
            await client.record_engagement(5, "view")

        assert bodies == [{"type": "view"}]

    @pytest.mark.asyncio
    async def test_rejects_unknown_type_locally(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with _client(handler) as client:
            with pytest.raises(InvalidEngagementType):
                await client.record_engagement(5, "wave")

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"detail": "Content not found"})

        async with _client(handler) as client:
            with pytest.raises(FeedFetchError) as exc_info:
                await client.record_engagement(5, "like")

        assert exc_info.value.status_code == 404
