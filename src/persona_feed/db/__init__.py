"""Database layer."""

from persona_feed.db.models import (
    Base,
    CompanyModel,
    ContentModel,
    InterestModel,
    PersonaModel,
    PlatformModel,
    UserModel,
    content_personas,
    content_platforms,
    persona_interests,
    persona_platforms,
)
from persona_feed.db.session import get_session, get_session_context, init_db

__all__ = [
    "Base",
    "get_session",
    "get_session_context",
    "init_db",
    # Models
    "CompanyModel",
    "ContentModel",
    "InterestModel",
    "PersonaModel",
    "PlatformModel",
    "UserModel",
    # Junctions
    "content_personas",
    "content_platforms",
    "persona_interests",
    "persona_platforms",
]
