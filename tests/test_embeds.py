"""Tests for embed adapters."""

import asyncio

import pytest

from persona_feed.client.embeds import (
    Container,
    EmbedEvent,
    InstagramEmbedAdapter,
    NativeVideoAdapter,
    Page,
    TikTokEmbedAdapter,
    build_adapters,
    select_adapter,
)
from persona_feed.client.embeds.instagram import INSTAGRAM_EMBED_SCRIPT
from persona_feed.client.embeds.tiktok import (
    TIKTOK_EMBED_SCRIPT,
    extract_username,
    extract_video_id,
)

TIKTOK_URL = "https://www.tiktok.com/@acme/video/7234567890123456789?lang=en"
INSTAGRAM_URL = "https://www.instagram.com/p/Cx1AbCdEf/"


@pytest.fixture
def page() -> Page:
    return Page()


def test_select_adapter(page) -> None:
    adapters = build_adapters(page)

    assert isinstance(select_adapter(TIKTOK_URL, adapters), TikTokEmbedAdapter)
    assert isinstance(select_adapter(INSTAGRAM_URL, adapters), InstagramEmbedAdapter)
    assert isinstance(select_adapter("https://cdn.example.com/a.mp4", adapters), NativeVideoAdapter)


def test_tiktok_url_parsing() -> None:
    assert extract_video_id(TIKTOK_URL) == "7234567890123456789"
    assert extract_video_id("https://www.tiktok.com/embed/7234567890123456789") == "7234567890123456789"
    assert extract_video_id("https://www.tiktok.com/@acme") is None
    assert extract_username(TIKTOK_URL) == "@acme"
    assert extract_username("https://www.tiktok.com/video/123") is None


class TestTikTok:
    @pytest.mark.asyncio
    async def test_mount_renders_blockquote_and_script_once(self, page) -> None:
        adapter = TikTokEmbedAdapter(page, timeout=1)
        first, second = Container("a"), Container("b")

        adapter.mount(first, TIKTOK_URL)
        adapter.mount(second, TIKTOK_URL)

        assert 'class="tiktok-embed"' in first.html
        assert 'data-video-id="7234567890123456789"' in first.html
        assert "@acme?refer=embed" in first.html
        assert page.scripts == [TIKTOK_EMBED_SCRIPT]

    @pytest.mark.asyncio
    async def test_invalid_url_errors_immediately(self, page) -> None:
        adapter = TikTokEmbedAdapter(page, timeout=1)
        container = Container("a")

        handle = adapter.mount(container, "https://www.tiktok.com/@acme")

        assert handle.outcome is EmbedEvent.ERROR
        assert "video ID" in handle.error.reason
        assert "embed-fallback" in container.html
        assert page.scripts == []


class TestInstagram:
    @pytest.mark.asyncio
    async def test_mount_renders_permalink(self, page) -> None:
        adapter = InstagramEmbedAdapter(page, timeout=1)
        container = Container("a")

        handle = adapter.mount(container, INSTAGRAM_URL)

        assert not handle.settled
        assert f'data-instgrm-permalink="{INSTAGRAM_URL}"' in container.html
        assert page.has_script(INSTAGRAM_EMBED_SCRIPT)

    @pytest.mark.asyncio
    async def test_profile_urls_are_rejected(self, page) -> None:
        adapter = InstagramEmbedAdapter(page, timeout=1)

        handle = adapter.mount(Container("a"), "https://www.instagram.com/acme/")

        assert handle.outcome is EmbedEvent.ERROR


class TestHandleLifecycle:
    @pytest.mark.asyncio
    async def test_settles_exactly_once(self, page) -> None:
        events: list[EmbedEvent] = []
        adapter = NativeVideoAdapter(page, timeout=1)

        handle = adapter.mount(
            Container("a"), "https://cdn.example.com/a.mp4", listener=lambda h: events.append(h.outcome)
        )

        assert handle.ready() is True
        assert handle.fail("late failure") is False
        assert handle.ready() is False
        assert events == [EmbedEvent.READY]

    @pytest.mark.asyncio
    async def test_silence_times_out_to_error(self, page) -> None:
        adapter = TikTokEmbedAdapter(page, timeout=0.01)
        container = Container("a")

        handle = adapter.mount(container, TIKTOK_URL)
        outcome = await asyncio.wait_for(handle.wait(), timeout=1)

        assert outcome is EmbedEvent.ERROR
        assert "not ready" in handle.error.reason
        assert "View on TikTok" in container.html

    @pytest.mark.asyncio
    async def test_unmount_silences_handle(self, page) -> None:
        events: list[EmbedEvent] = []
        adapter = InstagramEmbedAdapter(page, timeout=0.01)
        container = Container("a")

        handle = adapter.mount(container, INSTAGRAM_URL, listener=lambda h: events.append(h.outcome))
        adapter.unmount(handle)
        await asyncio.sleep(0.05)

        assert events == []
        assert handle.ready() is False
        assert container.is_empty

    def test_unmount_keeps_fallback_of_failed_mount(self, page) -> None:
        adapter = TikTokEmbedAdapter(page, timeout=1)
        container = Container("a")

        handle = adapter.mount(container, "https://www.tiktok.com/@acme")
        adapter.unmount(handle)

        assert handle.outcome is EmbedEvent.ERROR
        assert "View on TikTok" in container.html

    @pytest.mark.asyncio
    async def test_remount_after_error_replaces_content(self, page) -> None:
        adapter = TikTokEmbedAdapter(page, timeout=1)
        container = Container("a")

        failed = adapter.mount(container, "https://example.com/not-tiktok")
        assert failed.outcome is EmbedEvent.ERROR

        adapter.mount(container, TIKTOK_URL)

        assert len(container.nodes) == 1
        assert "embed-fallback" not in container.html

    @pytest.mark.asyncio
    async def test_native_autoplay_attribute(self, page) -> None:
        adapter = NativeVideoAdapter(page, timeout=1)
        playing, idle = Container("a"), Container("b")

        adapter.mount(playing, "https://cdn.example.com/a.mp4", autoplay=True)
        adapter.mount(idle, "https://cdn.example.com/b.mp4", autoplay=False)

        assert "autoplay" in playing.html
        assert "autoplay" not in idle.html
        assert page.scripts == []
