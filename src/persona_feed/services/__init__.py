"""Business services: repositories, association sync, feed and metrics."""

from persona_feed.services.associations import (
    CONTENT_PERSONAS,
    CONTENT_PLATFORMS,
    PERSONA_INTERESTS,
    PERSONA_PLATFORMS,
    AssociationSynchronizer,
    PartialSyncError,
    Relation,
)
from persona_feed.services.content import ContentRepository
from persona_feed.services.dimensions import DimensionResolver
from persona_feed.services.feed import FeedQuery
from persona_feed.services.metrics import MetricsAccumulator
from persona_feed.services.personas import PersonaRepository

__all__ = [
    "CONTENT_PERSONAS",
    "CONTENT_PLATFORMS",
    "PERSONA_INTERESTS",
    "PERSONA_PLATFORMS",
    "AssociationSynchronizer",
    "ContentRepository",
    "DimensionResolver",
    "FeedQuery",
    "MetricsAccumulator",
    "PartialSyncError",
    "PersonaRepository",
    "Relation",
]
