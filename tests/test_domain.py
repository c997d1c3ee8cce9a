"""Tests for domain models and pure feed helpers."""

import pytest

from persona_feed.domain.enums import ContentStatus, EngagementType, SourceType
from persona_feed.domain.feed import detect_source_type, enabled_platforms, filter_by_platforms
from persona_feed.domain.models import FeedRow, LinkUpdate


def _row(row_id: int, *platforms: str) -> FeedRow:
    return FeedRow(
        id=row_id,
        title=f"Row {row_id}",
        type="video",
        status=ContentStatus.PUBLISHED,
        platform_names=list(platforms),
    )


def test_link_update_states() -> None:
    """Omitted, empty and non-empty are three different instructions."""
    keep = LinkUpdate.from_optional(None)
    clear = LinkUpdate.from_optional([])
    replace = LinkUpdate.from_optional([3, 1])

    assert not keep.is_set
    assert clear.is_set and clear.values == ()
    assert replace.values == (3, 1)
    assert LinkUpdate.clear() == clear
    assert LinkUpdate.keep() == keep


def test_status_rank_puts_published_first() -> None:
    ordered = sorted(ContentStatus, key=lambda status: status.rank)

    assert ordered == [
        ContentStatus.PUBLISHED,
        ContentStatus.SCHEDULED,
        ContentStatus.REVIEW,
        ContentStatus.DRAFT,
    ]


def test_engagement_counters() -> None:
    assert [e.counter for e in EngagementType] == ["views", "likes", "comments", "shares"]


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.tiktok.com/@acme/video/7234567890123456789", SourceType.TIKTOK),
        ("https://vm.TikTok.com/ZM8abc/", SourceType.TIKTOK),
        ("https://www.instagram.com/reel/Cx1abc/", SourceType.INSTAGRAM),
        ("https://cdn.example.com/clips/launch.mp4", SourceType.NATIVE),
        (None, SourceType.NATIVE),
    ],
)
def test_detect_source_type(url, expected) -> None:
    assert detect_source_type(url) == expected


def test_filter_by_platforms_matches_any_case_insensitively() -> None:
    rows = [_row(1, "TikTok"), _row(2, "Instagram", "YouTube"), _row(3)]

    assert [r.id for r in filter_by_platforms(rows, ["tiktok", "YOUTUBE"])] == [1, 2]
    assert [r.id for r in filter_by_platforms(rows, [])] == [1, 2, 3]


def test_enabled_platforms() -> None:
    """All toggles on means no filter."""
    assert enabled_platforms({"TikTok": True, "Instagram": True}) == set()
    assert enabled_platforms({"TikTok": True, "Instagram": False}) == {"tiktok"}
    assert enabled_platforms({"TikTok": False, "Instagram": False}) == set()
    assert enabled_platforms({}) == set()
