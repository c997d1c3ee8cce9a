"""Replace-semantics synchronization of many-to-many junction rows."""

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import Table, delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from persona_feed.db.models import (
    Base,
    InterestModel,
    PlatformModel,
    content_personas,
    content_platforms,
    persona_interests,
    persona_platforms,
)
from persona_feed.domain.errors import StorageError, ValidationError
from persona_feed.logging import get_logger
from persona_feed.services.dimensions import DimensionResolver

logger = get_logger(__name__)


@dataclass(frozen=True)
class Relation:
    """A junction table seen from its owning side.

    Label-keyed relations name a ``dimension`` model; their targets are
    names resolved through :class:`DimensionResolver`. Id-keyed relations
    take related ids directly.
    """

    table: Table
    owner_column: str
    related_column: str
    dimension: type[Base] | None = None

    @property
    def name(self) -> str:
        return self.table.name

    @property
    def label_keyed(self) -> bool:
        return self.dimension is not None


CONTENT_PERSONAS = Relation(content_personas, "content_id", "persona_id")
CONTENT_PLATFORMS = Relation(content_platforms, "content_id", "platform_id")
PERSONA_PLATFORMS = Relation(persona_platforms, "persona_id", "platform_id", PlatformModel)
PERSONA_INTERESTS = Relation(persona_interests, "persona_id", "interest_id", InterestModel)


class PartialSyncError(StorageError):
    """An insert failed mid-sync; the entity keeps only the links made so far."""

    def __init__(self, relation: Relation, entity_id: int, linked: list[int]) -> None:
        self.relation = relation
        self.entity_id = entity_id
        self.linked = linked
        super().__init__(
            f"Failed to link {relation.name} for {relation.owner_column}={entity_id} "
            f"after {len(linked)} row(s)"
        )


class AssociationSynchronizer:
    """Makes an entity's junction rows mirror exactly the most recent target set.

    All existing rows for the entity are deleted, then one fresh row is
    inserted per distinct target. An empty target list detaches the entity.
    Nothing is committed here; the caller owns the transaction boundary.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _resolve(self, relation: Relation, target: int | str) -> int:
        if relation.label_keyed:
            if not isinstance(target, str) or not target:
                raise ValidationError(f"{relation.name} targets must be non-empty names")
            return DimensionResolver(self.session, relation.dimension).resolve(target)

        if isinstance(target, bool):
            raise ValidationError(f"{relation.name} targets must be integer ids")
        try:
            return int(target)
        except (TypeError, ValueError):
            raise ValidationError(f"{relation.name} targets must be integer ids")

    def sync(self, entity_id: int, relation: Relation, targets: Iterable[int | str]) -> list[int]:
        """Replace the entity's links in ``relation`` with ``targets``.

        Args:
            entity_id: Id of the owning row (content or persona).
            relation: Junction to synchronize.
            targets: Related ids, or names for label-keyed relations.

        Returns:
            The related ids now linked, in insertion order.

        Raises:
            ValidationError: If a target has the wrong shape.
            PartialSyncError: If an insert fails after the old links were removed.
            StorageError: If the delete phase or a label resolution fails.
        """
        targets = list(targets)
        owner_col = relation.table.c[relation.owner_column]

        try:
            self.session.execute(delete(relation.table).where(owner_col == entity_id))
        except SQLAlchemyError as e:
            logger.error(
                "association_delete_failed",
                relation=relation.name,
                entity_id=entity_id,
                error=str(e),
            )
            raise StorageError(f"Failed to clear {relation.name} for {entity_id}") from e

        linked: list[int] = []
        for target in targets:
            related_id = self._resolve(relation, target)
            if related_id in linked:
                continue
            try:
                with self.session.begin_nested():
                    self.session.execute(
                        insert(relation.table).values(
                            {relation.owner_column: entity_id, relation.related_column: related_id}
                        )
                    )
            except SQLAlchemyError as e:
                logger.error(
                    "association_insert_failed",
                    relation=relation.name,
                    entity_id=entity_id,
                    related_id=related_id,
                    linked=len(linked),
                    error=str(e),
                )
                raise PartialSyncError(relation, entity_id, linked) from e
            linked.append(related_id)

        logger.debug(
            "associations_synced",
            relation=relation.name,
            entity_id=entity_id,
            count=len(linked),
        )
        return linked

    def clear(self, entity_id: int, relation: Relation) -> None:
        """Detach the entity from every row in ``relation``."""
        self.sync(entity_id, relation, [])

    def clear_related(self, related_id: int, relation: Relation) -> None:
        """Remove every junction row pointing at ``related_id`` from the other side."""
        related_col = relation.table.c[relation.related_column]
        try:
            self.session.execute(delete(relation.table).where(related_col == related_id))
        except SQLAlchemyError as e:
            logger.error(
                "association_delete_failed",
                relation=relation.name,
                related_id=related_id,
                error=str(e),
            )
            raise StorageError(f"Failed to clear {relation.name} for {related_id}") from e

    def linked_ids(self, entity_id: int, relation: Relation) -> list[int]:
        """Related ids currently linked to the entity, ascending."""
        owner_col = relation.table.c[relation.owner_column]
        related_col = relation.table.c[relation.related_column]
        try:
            rows = self.session.execute(
                select(related_col).where(owner_col == entity_id).order_by(related_col)
            )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {relation.name} for {entity_id}") from e
        return list(rows.scalars().all())
