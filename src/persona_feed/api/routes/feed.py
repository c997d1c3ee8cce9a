"""Viewer feed endpoint."""

from fastapi import APIRouter, HTTPException, Query, status

from persona_feed.api.deps import PersonaRepositoryDep, SessionDep
from persona_feed.api.errors import domain_errors
from persona_feed.api.schemas import FeedRowResponse
from persona_feed.domain.feed import filter_by_platforms
from persona_feed.logging import get_logger
from persona_feed.services.feed import FeedQuery

router = APIRouter(prefix="/feed", tags=["Feed"])
logger = get_logger(__name__)


@router.get(
    "",
    response_model=list[FeedRowResponse],
    summary="Published feed",
    description=(
        "Published content, newest first. Optionally scoped to a persona and "
        "filtered to a comma-separated list of platforms (case-insensitive)."
    ),
)
async def get_feed(
    session: SessionDep,
    personas: PersonaRepositoryDep,
    persona: int | None = Query(None, description="Persona id to scope the feed to"),
    platforms: str | None = Query(None, description="Comma-separated platform names"),
) -> list[FeedRowResponse]:
    """Get the published feed."""
    with domain_errors("Error retrieving feed"):
        if persona is not None and personas.find_by_id(persona) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Persona not found")
        rows = FeedQuery(session).get_published(persona)

    wanted = [name for name in (platforms or "").split(",") if name.strip()]
    rows = filter_by_platforms(rows, wanted)
    logger.debug("feed_served", persona_id=persona, platforms=wanted, count=len(rows))
    return [FeedRowResponse.model_validate(row) for row in rows]
