"""Embed adapter interface and the page model embeds render into.

A :class:`Page` stands for the document: provider scripts are injected into
it at most once. A :class:`Container` is one item's mount point and holds
the markup of at most one embed. Readiness is reported to the
:class:`EmbedHandle` by the host (a provider script processing the embed,
or a native video element finishing its first load).
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from html import escape

from persona_feed.config import settings
from persona_feed.domain.enums import SourceType
from persona_feed.domain.errors import EmbedError
from persona_feed.logging import get_logger

logger = get_logger(__name__)


class EmbedEvent(StrEnum):
    """Terminal outcome of a mount."""

    READY = "ready"
    ERROR = "error"


@dataclass
class Page:
    """Document-level state shared by every embed on the page."""

    scripts: list[str] = field(default_factory=list)

    def inject_script(self, src: str) -> bool:
        """Add a provider script tag unless one with the same src exists.

        Returns:
            True if the script was newly inserted.
        """
        if src in self.scripts:
            return False
        self.scripts.append(src)
        logger.debug("embed_script_injected", src=src)
        return True

    def has_script(self, src: str) -> bool:
        return src in self.scripts


@dataclass
class Container:
    """Mount point for one feed item."""

    key: str
    nodes: list[str] = field(default_factory=list)

    def clear(self) -> None:
        self.nodes.clear()

    def append(self, markup: str) -> None:
        self.nodes.append(markup)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def html(self) -> str:
        return "".join(self.nodes)


EmbedListener = Callable[["EmbedHandle"], None]


class EmbedHandle:
    """One mount of one embed.

    Settles exactly once, to ``ready`` or ``error``; later signals and any
    signal after :meth:`close` are ignored.
    """

    def __init__(
        self,
        adapter: "EmbedAdapter",
        container: Container,
        source_url: str,
        autoplay: bool = True,
    ) -> None:
        self.adapter = adapter
        self.container = container
        self.source_url = source_url
        self.autoplay = autoplay
        self.outcome: EmbedEvent | None = None
        self.error: EmbedError | None = None
        self.closed = False
        self._listeners: list[EmbedListener] = []
        self._settled = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None

    @property
    def settled(self) -> bool:
        return self.outcome is not None

    def add_listener(self, listener: EmbedListener) -> None:
        self._listeners.append(listener)

    def ready(self) -> bool:
        """Signal that the embed rendered. Returns False if ignored."""
        return self._settle(EmbedEvent.READY)

    def fail(self, reason: str) -> bool:
        """Signal that the embed failed. Returns False if ignored."""
        return self._settle(EmbedEvent.ERROR, EmbedError(self.source_url, reason))

    def _settle(self, outcome: EmbedEvent, error: EmbedError | None = None) -> bool:
        if self.settled or self.closed:
            return False
        self._cancel_timer()
        self.outcome = outcome
        self.error = error
        self._settled.set()
        for listener in list(self._listeners):
            listener(self)
        return True

    def start_timer(self, seconds: float) -> None:
        """Fail the mount if it has not settled within ``seconds``.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(
            seconds, self.fail, f"Embed not ready after {seconds:g}s"
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def close(self) -> None:
        """Detach the handle; it will emit nothing further."""
        self._cancel_timer()
        self.closed = True
        self._listeners.clear()

    async def wait(self) -> EmbedEvent | None:
        """Wait until the mount settles (``None`` if closed first)."""
        if not self.settled and not self.closed:
            await self._settled.wait()
        return self.outcome


class EmbedAdapter(ABC):
    """Abstract base class for playback embeds.

    Implementations:
    - NativeVideoAdapter: HTML5 video element for directly hosted files
    - TikTokEmbedAdapter: TikTok blockquote + embed.js
    - InstagramEmbedAdapter: Instagram blockquote + embed.js

    Adapters know nothing about sibling items; which item plays is decided
    by the feed player.
    """

    source_type: SourceType
    label: str

    def __init__(self, page: Page, timeout: float | None = None) -> None:
        self.page = page
        self.timeout = settings.embed_timeout_seconds if timeout is None else timeout

    @abstractmethod
    def render(self, handle: EmbedHandle) -> None:
        """Write the embed markup into the handle's container.

        Raises:
            EmbedError: If the source URL cannot be embedded.
        """
        ...

    def mount(
        self,
        container: Container,
        source_url: str,
        autoplay: bool = True,
        listener: EmbedListener | None = None,
    ) -> EmbedHandle:
        """Mount an embed into ``container``, replacing whatever it held.

        ``listener`` is called once when the mount settles. An invalid URL
        settles to error before this returns.
        """
        container.clear()
        handle = EmbedHandle(self, container, source_url, autoplay)
        handle.add_listener(self._on_settled)
        if listener is not None:
            handle.add_listener(listener)

        try:
            self.render(handle)
        except EmbedError as e:
            handle.fail(e.reason)
            return handle

        handle.start_timer(self.timeout)
        return handle

    def unmount(self, handle: EmbedHandle) -> None:
        """Tear down a mount and empty its container.

        A failed mount keeps its fallback link in place.
        """
        handle.close()
        if handle.outcome is not EmbedEvent.ERROR:
            handle.container.clear()

    def _on_settled(self, handle: EmbedHandle) -> None:
        if handle.outcome is EmbedEvent.ERROR:
            logger.warning(
                "embed_failed",
                source=self.source_type.value,
                url=handle.source_url,
                reason=handle.error.reason if handle.error else None,
            )
            handle.container.clear()
            handle.container.append(fallback_markup(handle.source_url, self.label))


def fallback_markup(source_url: str, label: str) -> str:
    """Inline fallback linking to the original source."""
    return (
        f'<div class="embed-fallback"><a href="{escape(source_url, quote=True)}" '
        f'target="_blank" rel="noopener noreferrer">View on {escape(label)}</a></div>'
    )
