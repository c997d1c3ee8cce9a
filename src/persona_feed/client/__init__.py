"""Feed client: API access, embed adapters and the feed player."""

from persona_feed.client.api import (
    FeedApiClient,
    FeedClientError,
    FeedEmptyError,
    FeedFetchError,
)
from persona_feed.client.player import FeedItem, FeedPlayer, FeedStatus

__all__ = [
    "FeedApiClient",
    "FeedClientError",
    "FeedEmptyError",
    "FeedFetchError",
    "FeedItem",
    "FeedPlayer",
    "FeedStatus",
]
