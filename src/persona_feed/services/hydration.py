"""Shared read helpers that turn content rows into hydrated domain records."""

from collections import defaultdict
from collections.abc import Iterable
from typing import Any, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from persona_feed.db.models import Base, ContentModel, UserModel
from persona_feed.domain.enums import ContentStatus, ContentType
from persona_feed.domain.errors import StorageError
from persona_feed.domain.models import ContentRecord, NamedRef
from persona_feed.logging import get_logger
from persona_feed.services.associations import Relation

logger = get_logger(__name__)

R = TypeVar("R", bound=ContentRecord)


def content_with_author() -> Select:
    """Base select of content rows left-joined to their author's name."""
    return select(ContentModel, UserModel.name.label("author_name")).outerjoin(
        UserModel, ContentModel.author_id == UserModel.id
    )


def execute(session: Session, statement: Any, what: str) -> Any:
    """Execute a read, converting driver failures into :class:`StorageError`."""
    try:
        return session.execute(statement)
    except SQLAlchemyError as e:
        logger.error("storage_read_failed", what=what, error=str(e))
        raise StorageError(f"Failed to read {what}") from e


def load_named_refs(
    session: Session,
    relation: Relation,
    related_model: type[Base],
    owner_ids: Iterable[int],
) -> dict[int, list[NamedRef]]:
    """Load ``{id, name}`` refs for many owners in one query, keyed by owner id."""
    owner_ids = list(owner_ids)
    refs: dict[int, list[NamedRef]] = defaultdict(list)
    if not owner_ids:
        return refs

    owner_col = relation.table.c[relation.owner_column]
    related_col = relation.table.c[relation.related_column]
    statement = (
        select(owner_col, related_model.id, related_model.name)
        .join(related_model, related_model.id == related_col)
        .where(owner_col.in_(owner_ids))
        .order_by(owner_col, related_model.id)
    )
    for owner_id, related_id, name in execute(session, statement, relation.name):
        refs[owner_id].append(NamedRef(id=related_id, name=name))
    return refs


def to_record(content: ContentModel, author_name: str | None, cls: type[R], **extra: Any) -> R:
    """Build a domain record of type ``cls`` from an ORM content row."""
    return cls(
        id=content.id,
        title=content.title,
        type=ContentType(content.type),
        status=ContentStatus(content.status),
        description=content.description,
        content_url=content.content_url,
        thumbnail_url=content.thumbnail_url,
        company_id=content.company_id,
        author_id=content.author_id,
        author_name=author_name,
        scheduled_date=content.scheduled_date,
        publish_date=content.publish_date,
        views=content.views or 0,
        likes=content.likes or 0,
        comments=content.comments or 0,
        shares=content.shares or 0,
        created_at=content.created_at,
        updated_at=content.updated_at,
        **extra,
    )
