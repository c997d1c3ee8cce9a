"""Domain models and business logic."""

from persona_feed.domain.enums import (
    CompanyStatus,
    ContentStatus,
    ContentType,
    EngagementType,
    PlaybackState,
    SourceType,
)
from persona_feed.domain.errors import (
    ConflictError,
    ContentAlreadyPublishedError,
    EmbedError,
    InvalidEngagementType,
    NotFoundError,
    PersonaFeedError,
    StorageError,
    ValidationError,
)
from persona_feed.domain.models import (
    ContentRecord,
    ContentWithRelations,
    FeedRow,
    LinkUpdate,
    NamedRef,
    PersonaWithRelations,
)

__all__ = [
    "CompanyStatus",
    "ConflictError",
    "ContentAlreadyPublishedError",
    "ContentRecord",
    "ContentStatus",
    "ContentType",
    "ContentWithRelations",
    "EmbedError",
    "EngagementType",
    "FeedRow",
    "InvalidEngagementType",
    "LinkUpdate",
    "NamedRef",
    "NotFoundError",
    "PersonaFeedError",
    "PersonaWithRelations",
    "PlaybackState",
    "SourceType",
    "StorageError",
    "ValidationError",
]
