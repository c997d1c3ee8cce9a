"""Content repository: content rows and their persona/platform links."""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from persona_feed.config import settings
from persona_feed.db.models import ContentModel, PersonaModel, PlatformModel
from persona_feed.domain.enums import ContentStatus, ContentType
from persona_feed.domain.errors import (
    ConflictError,
    ContentAlreadyPublishedError,
    NotFoundError,
    PersonaFeedError,
    StorageError,
    ValidationError,
)
from persona_feed.domain.models import ContentWithRelations, FeedRow, LinkUpdate
from persona_feed.logging import get_logger
from persona_feed.services.associations import (
    CONTENT_PERSONAS,
    CONTENT_PLATFORMS,
    AssociationSynchronizer,
    PartialSyncError,
    Relation,
)
from persona_feed.services.feed import FeedQuery
from persona_feed.services.hydration import (
    content_with_author,
    execute,
    load_named_refs,
    to_record,
)

logger = get_logger(__name__)

WRITABLE_COLUMNS = frozenset(
    {
        "title",
        "description",
        "type",
        "status",
        "content_url",
        "thumbnail_url",
        "author_id",
        "company_id",
        "scheduled_date",
        "publish_date",
    }
)
METRIC_COLUMNS = ("views", "likes", "comments", "shares")
DATE_COLUMNS = ("scheduled_date", "publish_date")


def normalize_date(value: datetime | str | None, fmt: str | None = None) -> datetime | None:
    """Coerce an ISO string or datetime to the fixed wire format's precision.

    Aware values are converted to UTC first. Anything finer than the wire
    format (microseconds, offsets) is dropped.
    """
    if value is None or value == "":
        return None
    fmt = fmt or settings.bulk_date_format
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}")
    if not isinstance(value, datetime):
        raise ValidationError(f"Invalid date: {value!r}")
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return datetime.strptime(value.strftime(fmt), fmt)


def _clean_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - WRITABLE_COLUMNS
    if unknown:
        raise ValidationError(f"Unknown content field(s): {', '.join(sorted(unknown))}")

    cleaned = dict(fields)
    if "type" in cleaned:
        try:
            cleaned["type"] = ContentType(cleaned["type"]).value
        except ValueError:
            raise ValidationError(f"Invalid content type: {cleaned['type']!r}")
    if "status" in cleaned and cleaned["status"] is not None:
        try:
            cleaned["status"] = ContentStatus(cleaned["status"]).value
        except ValueError:
            raise ValidationError(f"Invalid status: {cleaned['status']!r}")
    return cleaned


class ContentRepository:
    """Owns content records and keeps their persona/platform links consistent.

    Writes commit in units: the content row first, then its links. A link
    failure after the row was written leaves the row committed, so callers
    must treat a failed write as possibly partially applied.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.links = AssociationSynchronizer(session)

    # ------------------------------------------------------------------
    # Write helpers
    # ------------------------------------------------------------------

    def _commit(self, what: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("content_commit_failed", what=what, error=str(e))
            raise StorageError(f"Failed to save {what}") from e

    def _apply_links(self, content_id: int, updates: Iterable[tuple[Relation, LinkUpdate]]) -> None:
        try:
            for relation, link_update in updates:
                if link_update.is_set:
                    self.links.sync(content_id, relation, link_update.values)
        except PartialSyncError:
            # Keep the under-linked state rather than restoring stale links
            self._commit("content links")
            raise
        except PersonaFeedError:
            self.session.rollback()
            raise
        self._commit("content links")

    def _current_status(self, content_id: int) -> str | None:
        return execute(
            self.session,
            select(ContentModel.status).where(ContentModel.id == content_id),
            "content status",
        ).scalar_one_or_none()

    def _insert(self, fields: Mapping[str, Any], imported: bool = False) -> int:
        cleaned = _clean_fields(fields)
        if not cleaned.get("title"):
            raise ValidationError("Content title is required")
        if not cleaned.get("type"):
            raise ValidationError("Content type is required")
        cleaned["status"] = cleaned.get("status") or ContentStatus.DRAFT.value
        if cleaned["status"] == ContentStatus.PUBLISHED.value:
            if not imported:
                raise ValidationError("New content cannot be published directly; use publish")
            if cleaned.get("publish_date") is None:
                cleaned["publish_date"] = normalize_date(datetime.now(UTC))

        content = ContentModel(**cleaned)
        try:
            self.session.add(content)
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("content_insert_failed", title=cleaned.get("title"), error=str(e))
            raise StorageError("Failed to create content") from e
        content_id = content.id
        self._commit("content")
        return content_id

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(
        self,
        fields: Mapping[str, Any],
        persona_ids: Iterable[int] | None = None,
        platform_ids: Iterable[int] | None = None,
    ) -> int:
        """Insert a content row, then link it to personas and platforms.

        A relation is synchronized only when its list is non-empty. New
        content starts in draft, review or scheduled; ``publish`` is the only
        way to reach published.

        Raises:
            ValidationError: If ``fields`` asks for status published.
        """
        return self._create(fields, persona_ids, platform_ids)

    def _create(
        self,
        fields: Mapping[str, Any],
        persona_ids: Iterable[int] | None,
        platform_ids: Iterable[int] | None,
        imported: bool = False,
    ) -> int:
        content_id = self._insert(fields, imported=imported)
        persona_ids = list(persona_ids or [])
        platform_ids = list(platform_ids or [])

        self._apply_links(
            content_id,
            [
                (CONTENT_PERSONAS, LinkUpdate.replace(persona_ids) if persona_ids else LinkUpdate.keep()),
                (CONTENT_PLATFORMS, LinkUpdate.replace(platform_ids) if platform_ids else LinkUpdate.keep()),
            ],
        )
        logger.info(
            "content_created",
            content_id=content_id,
            personas=len(persona_ids),
            platforms=len(platform_ids),
        )
        return content_id

    def update(
        self,
        content_id: int,
        fields: Mapping[str, Any],
        personas: LinkUpdate | None = None,
        platforms: LinkUpdate | None = None,
    ) -> None:
        """Write only the given columns; re-sync each relation whose update is set.

        A set relation is a destructive replace, not a merge. Existence of
        ``content_id`` is not checked here.

        Raises:
            ValidationError: If ``fields`` asks for status published.
            ConflictError: If the status of published content would change.
        """
        personas = personas or LinkUpdate.keep()
        platforms = platforms or LinkUpdate.keep()
        cleaned = _clean_fields(fields)
        status = cleaned.get("status")
        if status == ContentStatus.PUBLISHED.value:
            raise ValidationError("Content cannot be published through update; use publish")

        if cleaned:
            statement = update(ContentModel).where(ContentModel.id == content_id)
            if status is not None:
                # Published is terminal
                statement = statement.where(ContentModel.status != ContentStatus.PUBLISHED.value)
            try:
                result = self.session.execute(statement.values(**cleaned))
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.error("content_update_failed", content_id=content_id, error=str(e))
                raise StorageError("Failed to update content") from e
            if status is not None and result.rowcount == 0:
                self.session.rollback()
                if self._current_status(content_id) == ContentStatus.PUBLISHED.value:
                    raise ConflictError("Published content cannot change status")
            self._commit("content")

        self._apply_links(content_id, [(CONTENT_PERSONAS, personas), (CONTENT_PLATFORMS, platforms)])
        logger.info(
            "content_updated",
            content_id=content_id,
            fields=sorted(cleaned),
            personas_replaced=personas.is_set,
            platforms_replaced=platforms.is_set,
        )

    def delete(self, content_id: int) -> bool:
        """Remove the content's links, then the content row.

        Returns:
            True if a content row was deleted.
        """
        self.links.clear(content_id, CONTENT_PERSONAS)
        self.links.clear(content_id, CONTENT_PLATFORMS)
        try:
            result = self.session.execute(delete(ContentModel).where(ContentModel.id == content_id))
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("content_delete_failed", content_id=content_id, error=str(e))
            raise StorageError("Failed to delete content") from e
        self._commit("content deletion")
        logger.info("content_deleted", content_id=content_id, existed=result.rowcount > 0)
        return result.rowcount > 0

    def publish(self, content_id: int) -> None:
        """Move content to published and stamp ``publish_date``, exactly once.

        Raises:
            NotFoundError: If the content does not exist.
            ContentAlreadyPublishedError: If it is already published.
        """
        try:
            result = self.session.execute(
                update(ContentModel)
                .where(
                    ContentModel.id == content_id,
                    ContentModel.status != ContentStatus.PUBLISHED.value,
                )
                .values(status=ContentStatus.PUBLISHED.value, publish_date=func.now())
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("content_publish_failed", content_id=content_id, error=str(e))
            raise StorageError("Failed to publish content") from e

        if result.rowcount == 0:
            self.session.rollback()
            status = self._current_status(content_id)
            if status is None:
                raise NotFoundError("Content not found")
            raise ContentAlreadyPublishedError(content_id)

        self._commit("content publication")
        logger.info("content_published", content_id=content_id)

    def update_metrics(self, content_id: int, deltas: Mapping[str, int]) -> int:
        """Add each present delta to its counter (``column = column + delta``).

        Keys other than views, likes, comments and shares are ignored.

        Returns:
            Number of content rows touched (0 if the id does not exist).
        """
        values: dict[str, Any] = {}
        for column in METRIC_COLUMNS:
            if column not in deltas:
                continue
            delta = deltas[column]
            if isinstance(delta, bool) or not isinstance(delta, int) or delta < 0:
                raise ValidationError(f"{column} must be a non-negative integer")
            values[column] = getattr(ContentModel, column) + delta

        if not values:
            return 0

        try:
            result = self.session.execute(
                update(ContentModel).where(ContentModel.id == content_id).values(**values)
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("content_metrics_failed", content_id=content_id, error=str(e))
            raise StorageError("Failed to update content metrics") from e
        self._commit("content metrics")
        return result.rowcount

    def bulk_create(self, items: Iterable[Mapping[str, Any]]) -> list[int]:
        """Create many content items in sequence.

        Each item's row and links form their own unit; a failure part-way
        leaves earlier items committed. Imported items may already be
        published; one without a ``publish_date`` is stamped with now.
        """
        created: list[int] = []
        for item in items:
            item = dict(item)
            persona_ids = item.pop("personas", None) or []
            platform_ids = item.pop("platforms", None) or []
            for column in DATE_COLUMNS:
                if column in item:
                    item[column] = normalize_date(item[column])
            fields = {key: value for key, value in item.items() if value is not None}

            created.append(self._create(fields, persona_ids, platform_ids, imported=True))

        logger.info("content_bulk_created", count=len(created))
        return created

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _hydrate(self, results: list[Any]) -> list[ContentWithRelations]:
        content_ids = [content.id for content, _ in results]
        platforms = load_named_refs(self.session, CONTENT_PLATFORMS, PlatformModel, content_ids)
        personas = load_named_refs(self.session, CONTENT_PERSONAS, PersonaModel, content_ids)
        return [
            to_record(
                content,
                author_name,
                ContentWithRelations,
                platforms=list(platforms.get(content.id, [])),
                personas=list(personas.get(content.id, [])),
            )
            for content, author_name in results
        ]

    def find_by_id(self, content_id: int) -> ContentWithRelations | None:
        """Content with its platforms and personas, or None."""
        results = execute(
            self.session,
            content_with_author().where(ContentModel.id == content_id),
            "content",
        ).all()
        if not results:
            return None
        return self._hydrate(results)[0]

    def list_all(self) -> list[ContentWithRelations]:
        """Every content item: published, scheduled, review, draft; newest first within each."""
        status_rank = case(
            {status.value: status.rank for status in ContentStatus},
            value=ContentModel.status,
            else_=len(ContentStatus) + 1,
        )
        statement = content_with_author().order_by(
            status_rank, ContentModel.created_at.desc(), ContentModel.id.desc()
        )
        return self._hydrate(execute(self.session, statement, "content").all())

    def get_by_persona(self, persona_id: int) -> list[FeedRow]:
        """Published content linked to a persona, newest first."""
        return FeedQuery(self.session).get_published(persona_id)

    def get_by_persona_and_company(self, persona_id: int, company_id: int) -> list[FeedRow]:
        """The feed's primary read path; see :class:`FeedQuery`."""
        return FeedQuery(self.session).get_by_persona_and_company(persona_id, company_id)
