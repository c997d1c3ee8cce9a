"""HTTP client for the content API, as used by the feed player."""

from typing import Any

import httpx
from pydantic import ValidationError as SchemaValidationError

from persona_feed.api.schemas import FeedRowResponse
from persona_feed.config import settings
from persona_feed.domain.enums import EngagementType
from persona_feed.domain.errors import InvalidEngagementType, PersonaFeedError
from persona_feed.domain.models import FeedRow, NamedRef
from persona_feed.logging import get_logger

logger = get_logger(__name__)


class FeedClientError(PersonaFeedError):
    """Base class for feed client failures."""

    pass


class FeedEmptyError(FeedClientError):
    """The persona+company pair has no content. Rendered as an empty state."""

    pass


class FeedFetchError(FeedClientError):
    """Any other feed or engagement request failure. Rendered with a retry."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


def _to_feed_row(data: Any) -> FeedRow:
    parsed = FeedRowResponse.model_validate(data)
    values = parsed.model_dump(exclude={"personas"})
    return FeedRow(**values, personas=[NamedRef(id=p.id, name=p.name) for p in parsed.personas])


class FeedApiClient:
    """Async client for the feed and engagement endpoints.

    No timeout is applied to feed fetches; cancellation is the caller's
    job (see :class:`persona_feed.client.player.FeedPlayer`).
    """

    def __init__(
        self,
        base_url: str | None = None,
        user_id: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.feed_api_url).rstrip("/")
        self.user_id = user_id
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            headers = {"X-User-Id": str(self.user_id)} if self.user_id is not None else None
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=None,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FeedApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def fetch_feed(self, persona_id: int, company_id: int) -> list[FeedRow]:
        """Fetch the ordered feed for a persona within a company.

        Raises:
            FeedEmptyError: If the pair has no content.
            FeedFetchError: On transport errors, non-2xx responses or a malformed body.
        """
        client = await self._get_client()
        path = f"/content/persona/{persona_id}/company/{company_id}"

        try:
            response = await client.get(path)
        except httpx.RequestError as e:
            logger.error("feed_fetch_failed", persona_id=persona_id, company_id=company_id, error=str(e))
            raise FeedFetchError(f"Failed to load feed: {e}") from e

        if response.is_error:
            logger.error(
                "feed_fetch_failed",
                persona_id=persona_id,
                company_id=company_id,
                status_code=response.status_code,
            )
            raise FeedFetchError(
                f"Failed to load feed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            body = response.json()
            rows = [_to_feed_row(item) for item in body["items"]]
        except (ValueError, KeyError, TypeError, SchemaValidationError) as e:
            logger.error("feed_response_invalid", persona_id=persona_id, error=str(e))
            raise FeedFetchError("Malformed feed response", status_code=response.status_code) from e

        if not rows:
            raise FeedEmptyError(body.get("message") or "No content found for that persona & company")

        logger.debug("feed_fetched", persona_id=persona_id, company_id=company_id, count=len(rows))
        return rows

    async def record_engagement(
        self,
        content_id: int,
        engagement_type: EngagementType | str,
    ) -> None:
        """Record one engagement (+1) against a content item.

        Raises:
            InvalidEngagementType: If the type is not recognized (checked locally).
            FeedFetchError: If the request fails.
        """
        try:
            engagement = EngagementType(engagement_type)
        except ValueError:
            raise InvalidEngagementType(engagement_type)

        client = await self._get_client()
        try:
            response = await client.post(
                f"/content/{content_id}/metrics", json={"type": engagement.value}
            )
        except httpx.RequestError as e:
            raise FeedFetchError(f"Failed to record {engagement.value}: {e}") from e

        if response.is_error:
            raise FeedFetchError(
                f"Failed to record {engagement.value} (HTTP {response.status_code})",
                status_code=response.status_code,
            )
