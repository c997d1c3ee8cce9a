"""Feed player: the viewer-side state machine over an ordered feed.

The player alone owns which item is active. Items receive that decision as
an argument; nothing reaches into a shared "now playing" slot.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from persona_feed.client.api import FeedApiClient, FeedEmptyError, FeedFetchError
from persona_feed.client.embeds import (
    Container,
    EmbedAdapter,
    EmbedEvent,
    EmbedHandle,
    Page,
    build_adapters,
    select_adapter,
)
from persona_feed.config import settings
from persona_feed.domain.enums import EngagementType, PlaybackState, SourceType
from persona_feed.domain.errors import EmbedError, PersonaFeedError
from persona_feed.domain.feed import detect_source_type, enabled_platforms, filter_by_platforms
from persona_feed.domain.models import FeedRow
from persona_feed.logging import get_logger

logger = get_logger(__name__)


class FeedStatus(StrEnum):
    """What the feed view as a whole is showing."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"  # No content for the persona+company; not an error
    ERROR = "error"  # Any other fetch failure; offers a retry


@dataclass
class FeedItem:
    """One feed row with its playback state."""

    row: FeedRow
    container: Container
    source_type: SourceType
    playback: PlaybackState = PlaybackState.IDLE
    handle: EmbedHandle | None = None
    error: EmbedError | None = None
    viewed: bool = False

    @property
    def mounted(self) -> bool:
        return self.handle is not None


@dataclass
class _Load:
    persona_id: int
    company_id: int
    task: asyncio.Task = field(repr=False)

    @property
    def key(self) -> tuple[int, int]:
        return (self.persona_id, self.company_id)


class FeedPlayer:
    """Fetches a feed, filters it by platform and drives per-item playback.

    Only the active item may be Playing. Rows within ``overscan`` of the
    active one are mounted; everything else is unmounted.
    """

    def __init__(
        self,
        client: FeedApiClient,
        page: Page | None = None,
        adapters: Mapping[SourceType, EmbedAdapter] | None = None,
        viewport_height: int | None = None,
        overscan: int | None = None,
        embed_timeout: float | None = None,
    ) -> None:
        self.client = client
        self.page = page or Page()
        self.adapters = dict(adapters) if adapters else build_adapters(self.page, embed_timeout)
        self.viewport_height = viewport_height or settings.feed_viewport_height
        self.overscan = settings.feed_overscan if overscan is None else overscan

        self.status = FeedStatus.IDLE
        self.message: str | None = None
        self.persona_id: int | None = None
        self.company_id: int | None = None
        self.platform_toggles: dict[str, bool] = {}
        self.items: list[FeedItem] = []
        self.active_index = -1

        self._rows: list[FeedRow] = []
        self._cache: dict[int, FeedItem] = {}
        self._load: _Load | None = None
        self._background: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, persona_id: int, company_id: int) -> None:
        """Fetch the feed for a persona+company and show it from index 0.

        Supersedes any fetch still in flight; a superseded fetch never
        touches the view.
        """
        self._cancel_load()
        self._reset_items()
        self._rows = []
        self._cache = {}
        self.persona_id = persona_id
        self.company_id = company_id
        self.status = FeedStatus.LOADING
        self.message = None

        load = _Load(
            persona_id,
            company_id,
            asyncio.create_task(self.client.fetch_feed(persona_id, company_id)),
        )
        self._load = load

        try:
            rows = await load.task
        except asyncio.CancelledError:
            if self._load is not load:
                logger.debug("feed_load_superseded", persona_id=persona_id, company_id=company_id)
                return
            self._cancel_load()
            self.status = FeedStatus.IDLE
            raise
        except FeedEmptyError as e:
            if self._is_current(load):
                self._load = None
                self.status = FeedStatus.EMPTY
                self.message = str(e)
            return
        except FeedFetchError as e:
            if self._is_current(load):
                self._load = None
                self.status = FeedStatus.ERROR
                self.message = str(e)
            return

        if not self._is_current(load):
            return
        self._load = None
        self._rows = rows
        self.status = FeedStatus.READY
        self._rebuild()
        logger.info("feed_ready", persona_id=persona_id, company_id=company_id, count=len(rows))

    async def retry(self) -> None:
        """Re-run the last load (the retry affordance of the error state)."""
        if self.persona_id is None or self.company_id is None:
            return
        await self.load(self.persona_id, self.company_id)

    async def switch_persona(self, persona_id: int) -> None:
        """Re-fetch for another persona within the current company."""
        if self.company_id is None:
            raise PersonaFeedError("No company selected")
        await self.load(persona_id, self.company_id)

    def _is_current(self, load: _Load) -> bool:
        return self._load is load and load.key == (self.persona_id, self.company_id)

    def _cancel_load(self) -> None:
        load, self._load = self._load, None
        if load is not None and not load.task.done():
            load.task.cancel()

    async def close(self) -> None:
        """Cancel in-flight work and unmount everything."""
        self._cancel_load()
        self._reset_items()
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self.status = FeedStatus.IDLE

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def set_platform_filter(self, toggles: Mapping[str, bool]) -> None:
        """Apply platform toggles over the cached feed and restart at index 0."""
        self.platform_toggles = dict(toggles)
        if self.status is FeedStatus.READY:
            self._rebuild()

    def toggle_platform(self, platform: str, enabled: bool) -> None:
        self.set_platform_filter({**self.platform_toggles, platform: enabled})

    def _rebuild(self) -> None:
        self._reset_items()
        rows = filter_by_platforms(self._rows, enabled_platforms(self.platform_toggles))
        self.items = [self._item_for(row) for row in rows]
        self.active_index = -1
        if self.items:
            self._activate(0)

    def _item_for(self, row: FeedRow) -> FeedItem:
        item = self._cache.get(row.id)
        if item is None:
            item = FeedItem(
                row=row,
                container=Container(key=f"content-{row.id}"),
                source_type=detect_source_type(row.content_url),
            )
            self._cache[row.id] = item
        return item

    def _reset_items(self) -> None:
        for item in self.items:
            self._unmount(item)
        self.items = []
        self.active_index = -1

    # ------------------------------------------------------------------
    # Scrolling and activation
    # ------------------------------------------------------------------

    def on_scroll(self, offset: float) -> int:
        """Recompute the active index from a scroll offset in pixels.

        The row whose top is nearest the top of the viewport wins.
        """
        if not self.items:
            return self.active_index
        index = round(max(offset, 0) / self.viewport_height)
        index = min(index, len(self.items) - 1)
        if index != self.active_index:
            self._activate(index)
        return self.active_index

    def set_active(self, index: int) -> None:
        if not 0 <= index < len(self.items):
            raise IndexError(f"No feed item at index {index}")
        if index != self.active_index:
            self._activate(index)

    def _activate(self, index: int) -> None:
        previous = self.active_index
        # Stop the old item before anything else can start
        if 0 <= previous < len(self.items):
            self._pause(self.items[previous])
        self.active_index = index
        self._sync_window()
        self._play(self.items[index])
        logger.debug("feed_item_activated", index=index, previous=previous)

    def _sync_window(self) -> None:
        low = self.active_index - self.overscan
        high = self.active_index + self.overscan
        for index, item in enumerate(self.items):
            if low <= index <= high:
                if not item.mounted and item.playback is not PlaybackState.ERROR:
                    self._mount(item, autoplay=index == self.active_index)
            elif item.mounted:
                self._unmount(item)

    @property
    def window(self) -> range:
        """Indices of the rows that should currently be mounted."""
        if self.active_index < 0:
            return range(0)
        return range(
            max(self.active_index - self.overscan, 0),
            min(self.active_index + self.overscan, len(self.items) - 1) + 1,
        )

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def _mount(self, item: FeedItem, autoplay: bool) -> None:
        adapter = select_adapter(item.row.content_url, self.adapters)
        item.playback = PlaybackState.LOADING
        item.handle = adapter.mount(
            item.container,
            item.row.content_url or "",
            autoplay=autoplay,
            listener=lambda handle: self._on_settled(item, handle),
        )

    def _unmount(self, item: FeedItem) -> None:
        if item.handle is not None:
            item.handle.adapter.unmount(item.handle)
            item.handle = None
        if item.playback is not PlaybackState.ERROR:
            item.playback = PlaybackState.IDLE

    def _on_settled(self, item: FeedItem, handle: EmbedHandle) -> None:
        if handle.outcome is EmbedEvent.ERROR:
            item.playback = PlaybackState.ERROR
            item.error = handle.error
            return
        item.playback = PlaybackState.READY
        if self.is_active(item):
            self._play(item)

    def _play(self, item: FeedItem) -> None:
        if item.playback not in (PlaybackState.READY, PlaybackState.PAUSED):
            return
        item.playback = PlaybackState.PLAYING
        if not item.viewed:
            item.viewed = True
            self._record_view(item)

    def _pause(self, item: FeedItem) -> None:
        if item.playback is PlaybackState.PLAYING:
            item.playback = PlaybackState.PAUSED

    def is_active(self, item: FeedItem) -> bool:
        return 0 <= self.active_index < len(self.items) and self.items[self.active_index] is item

    def pause(self) -> None:
        """User pause of the active item."""
        if self.active_item is not None:
            self._pause(self.active_item)

    def resume(self) -> None:
        """User resume of the active item."""
        if self.active_item is not None:
            self._play(self.active_item)

    @property
    def active_item(self) -> FeedItem | None:
        if 0 <= self.active_index < len(self.items):
            return self.items[self.active_index]
        return None

    @property
    def playing(self) -> list[int]:
        """Indices of items currently Playing (never more than one)."""
        return [i for i, item in enumerate(self.items) if item.playback is PlaybackState.PLAYING]

    def _record_view(self, item: FeedItem) -> None:
        task = asyncio.get_running_loop().create_task(self._send_view(item.row.id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _send_view(self, content_id: int) -> None:
        try:
            await self.client.record_engagement(content_id, EngagementType.VIEW)
        except FeedFetchError as e:
            logger.warning("view_record_failed", content_id=content_id, error=str(e))
