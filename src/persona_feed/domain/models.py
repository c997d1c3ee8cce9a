"""Domain models - pure Python classes independent of database."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from persona_feed.domain.enums import ContentStatus, ContentType


@dataclass(frozen=True)
class NamedRef:
    """An `{id, name}` reference to a related row."""

    id: int
    name: str


@dataclass(frozen=True)
class LinkUpdate:
    """Tri-state instruction for a many-to-many relation on update.

    ``values is None`` leaves the links untouched, an empty tuple detaches
    every link, anything else replaces the links with exactly these targets.
    """

    values: tuple[int | str, ...] | None = None

    @classmethod
    def keep(cls) -> "LinkUpdate":
        return cls(None)

    @classmethod
    def clear(cls) -> "LinkUpdate":
        return cls(())

    @classmethod
    def replace(cls, values: Iterable[int | str]) -> "LinkUpdate":
        return cls(tuple(values))

    @classmethod
    def from_optional(cls, values: Iterable[int | str] | None) -> "LinkUpdate":
        """Build from a request field where ``None`` means "field omitted"."""
        if values is None:
            return cls.keep()
        return cls.replace(values)

    @property
    def is_set(self) -> bool:
        return self.values is not None


@dataclass
class ContentRecord:
    """Columns of a content row plus the joined author name."""

    id: int
    title: str
    type: ContentType
    status: ContentStatus
    description: str | None = None
    content_url: str | None = None
    thumbnail_url: str | None = None
    company_id: int | None = None
    author_id: int | None = None
    author_name: str | None = None
    scheduled_date: datetime | None = None
    publish_date: datetime | None = None
    views: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_published(self) -> bool:
        return self.status == ContentStatus.PUBLISHED


@dataclass
class ContentWithRelations(ContentRecord):
    """A content item hydrated with its platform and persona links."""

    platforms: list[NamedRef] = field(default_factory=list)
    personas: list[NamedRef] = field(default_factory=list)


@dataclass
class FeedRow(ContentRecord):
    """A feed entry: content annotated with platform names and personas."""

    platform_names: list[str] = field(default_factory=list)
    personas: list[NamedRef] = field(default_factory=list)


@dataclass
class PersonaWithRelations:
    """A persona hydrated with its platforms, interests and content count."""

    id: int
    name: str
    description: str | None = None
    age_range: str | None = None
    active: bool = True
    company_id: int | None = None
    company_name: str | None = None
    platforms: list[NamedRef] = field(default_factory=list)
    interests: list[NamedRef] = field(default_factory=list)
    content_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
