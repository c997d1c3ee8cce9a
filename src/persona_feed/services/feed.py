"""Feed assembly: persona/company scoped content annotated for playback."""

from sqlalchemy import Select
from sqlalchemy.orm import Session

from persona_feed.config import settings
from persona_feed.db.models import ContentModel, PersonaModel, PlatformModel, content_personas
from persona_feed.domain.enums import ContentStatus
from persona_feed.domain.models import FeedRow
from persona_feed.logging import get_logger
from persona_feed.services.associations import CONTENT_PERSONAS, CONTENT_PLATFORMS
from persona_feed.services.hydration import (
    content_with_author,
    execute,
    load_named_refs,
    to_record,
)

logger = get_logger(__name__)


def _newest_first(statement: Select) -> Select:
    # Fixed tie-break: undated rows last, then newest id first
    return statement.order_by(
        ContentModel.publish_date.desc().nulls_last(),
        ContentModel.id.desc(),
    )


class FeedQuery:
    """Reads the ordered, fully annotated feed for a viewer.

    The full matching set is returned; paging and platform filtering are
    left to the client, which renders the list virtually.
    """

    def __init__(self, session: Session, published_only: bool | None = None) -> None:
        self.session = session
        self.published_only = (
            settings.feed_published_only if published_only is None else published_only
        )

    def _rows(self, statement: Select) -> list[FeedRow]:
        results = execute(self.session, statement, "feed").all()
        content_ids = [content.id for content, _ in results]

        platforms = load_named_refs(self.session, CONTENT_PLATFORMS, PlatformModel, content_ids)
        personas = load_named_refs(self.session, CONTENT_PERSONAS, PersonaModel, content_ids)

        return [
            to_record(
                content,
                author_name,
                FeedRow,
                platform_names=[ref.name for ref in platforms.get(content.id, [])],
                personas=list(personas.get(content.id, [])),
            )
            for content, author_name in results
        ]

    def get_by_persona_and_company(self, persona_id: int, company_id: int) -> list[FeedRow]:
        """Content linked to ``persona_id`` and owned by ``company_id``, newest first.

        Returns an empty list when nothing matches; whether the persona or
        company exists at all is for the caller to decide.
        """
        statement = (
            content_with_author()
            .join(content_personas, content_personas.c.content_id == ContentModel.id)
            .where(
                content_personas.c.persona_id == persona_id,
                ContentModel.company_id == company_id,
            )
        )
        if self.published_only:
            statement = statement.where(ContentModel.status == ContentStatus.PUBLISHED.value)

        rows = self._rows(_newest_first(statement))
        logger.debug(
            "feed_loaded",
            persona_id=persona_id,
            company_id=company_id,
            count=len(rows),
        )
        return rows

    def get_published(self, persona_id: int | None = None) -> list[FeedRow]:
        """All published content, optionally restricted to one persona, newest first."""
        statement = content_with_author().where(
            ContentModel.status == ContentStatus.PUBLISHED.value
        )
        if persona_id is not None:
            statement = statement.join(
                content_personas, content_personas.c.content_id == ContentModel.id
            ).where(content_personas.c.persona_id == persona_id)
        return self._rows(_newest_first(statement))
