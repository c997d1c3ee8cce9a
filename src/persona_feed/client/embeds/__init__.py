"""Playback embeds for native video, TikTok and Instagram sources."""

from collections.abc import Mapping

from persona_feed.client.embeds.base import (
    Container,
    EmbedAdapter,
    EmbedEvent,
    EmbedHandle,
    Page,
    fallback_markup,
)
from persona_feed.client.embeds.instagram import InstagramEmbedAdapter
from persona_feed.client.embeds.native import NativeVideoAdapter
from persona_feed.client.embeds.tiktok import TikTokEmbedAdapter
from persona_feed.domain.enums import SourceType
from persona_feed.domain.feed import detect_source_type


def build_adapters(page: Page, timeout: float | None = None) -> dict[SourceType, EmbedAdapter]:
    """One adapter per source type, all sharing ``page``."""
    return {
        SourceType.NATIVE: NativeVideoAdapter(page, timeout),
        SourceType.TIKTOK: TikTokEmbedAdapter(page, timeout),
        SourceType.INSTAGRAM: InstagramEmbedAdapter(page, timeout),
    }


def select_adapter(url: str | None, adapters: Mapping[SourceType, EmbedAdapter]) -> EmbedAdapter:
    """Pick the adapter for ``url`` by substring match."""
    return adapters[detect_source_type(url)]


__all__ = [
    "Container",
    "EmbedAdapter",
    "EmbedEvent",
    "EmbedHandle",
    "InstagramEmbedAdapter",
    "NativeVideoAdapter",
    "Page",
    "TikTokEmbedAdapter",
    "build_adapters",
    "detect_source_type",
    "fallback_markup",
    "select_adapter",
]
