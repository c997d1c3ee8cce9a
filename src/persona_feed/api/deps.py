"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from persona_feed.db.session import get_session
from persona_feed.services.content import ContentRepository
from persona_feed.services.metrics import MetricsAccumulator
from persona_feed.services.personas import PersonaRepository

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]


def get_current_user_id(x_user_id: Annotated[int | None, Header()] = None) -> int | None:
    """Id of the authenticated user.

    Authentication itself happens upstream; the gateway forwards the
    resolved user as ``X-User-Id``.
    """
    return x_user_id


CurrentUserDep = Annotated[int | None, Depends(get_current_user_id)]


def get_content_repository(session: SessionDep) -> ContentRepository:
    """Get a content repository bound to the request session."""
    return ContentRepository(session)


def get_persona_repository(session: SessionDep) -> PersonaRepository:
    """Get a persona repository bound to the request session."""
    return PersonaRepository(session)


def get_metrics_accumulator(session: SessionDep) -> MetricsAccumulator:
    """Get a metrics accumulator bound to the request session."""
    return MetricsAccumulator(session)


ContentRepositoryDep = Annotated[ContentRepository, Depends(get_content_repository)]
PersonaRepositoryDep = Annotated[PersonaRepository, Depends(get_persona_repository)]
MetricsAccumulatorDep = Annotated[MetricsAccumulator, Depends(get_metrics_accumulator)]
