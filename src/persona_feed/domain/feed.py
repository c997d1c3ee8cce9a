"""Pure feed helpers shared by the API and the feed client."""

from collections.abc import Collection, Iterable, Mapping
from typing import Protocol, TypeVar

from persona_feed.domain.enums import SourceType


class HasPlatformNames(Protocol):
    platform_names: list[str]


T = TypeVar("T", bound=HasPlatformNames)


def filter_by_platforms(rows: Iterable[T], platforms: Collection[str]) -> list[T]:
    """Keep rows distributed on at least one of ``platforms`` (case-insensitive).

    An empty ``platforms`` collection means "no filter".
    """
    rows = list(rows)
    wanted = {p.strip().lower() for p in platforms if p.strip()}
    if not wanted:
        return rows
    return [row for row in rows if any(name.lower() in wanted for name in row.platform_names)]


def enabled_platforms(toggles: Mapping[str, bool]) -> set[str]:
    """Platform keys switched on in a toggle map.

    All toggles on is the same as no filter, so it yields an empty set.
    """
    enabled = {name.lower() for name, on in toggles.items() if on}
    if len(enabled) == len(toggles):
        return set()
    return enabled


def detect_source_type(url: str | None) -> SourceType:
    """Pick a playback source by URL substring."""
    lowered = (url or "").lower()
    if "tiktok.com" in lowered:
        return SourceType.TIKTOK
    if "instagram.com" in lowered:
        return SourceType.INSTAGRAM
    return SourceType.NATIVE
