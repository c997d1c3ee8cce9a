"""Domain enumerations."""

from enum import StrEnum


class ContentType(StrEnum):
    """Kind of marketing content."""

    VIDEO = "video"
    ARTICLE = "article"
    GALLERY = "gallery"
    EVENT = "event"


class ContentStatus(StrEnum):
    """Lifecycle status of a content item."""

    DRAFT = "draft"
    REVIEW = "review"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"

    @property
    def rank(self) -> int:
        """Sort rank used by the content listing (published first)."""
        return _STATUS_RANK[self]


_STATUS_RANK = {
    ContentStatus.PUBLISHED: 1,
    ContentStatus.SCHEDULED: 2,
    ContentStatus.REVIEW: 3,
    ContentStatus.DRAFT: 4,
}


class EngagementType(StrEnum):
    """Viewer engagement recorded against a content item."""

    VIEW = "view"
    LIKE = "like"
    COMMENT = "comment"
    SHARE = "share"

    @property
    def counter(self) -> str:
        """Name of the content counter column this engagement increments."""
        return f"{self.value}s"


class CompanyStatus(StrEnum):
    """Status of an owning company."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class SourceType(StrEnum):
    """Playback source of a feed item."""

    NATIVE = "native"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"


class PlaybackState(StrEnum):
    """Playback sub-state of a single feed item."""

    IDLE = "idle"  # Not mounted
    LOADING = "loading"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ERROR = "error"  # Terminal, no auto-retry
