"""Lookup-or-create resolution of named dimension rows (platforms, interests)."""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from persona_feed.db.models import Base, InterestModel, PlatformModel
from persona_feed.domain.errors import StorageError
from persona_feed.logging import get_logger

logger = get_logger(__name__)


class DimensionResolver:
    """Resolves a label to the id of its dimension row, creating it if absent.

    Names are the natural key and match case-sensitively. The ``name`` column
    carries a unique constraint; an insert that loses a race against a
    concurrent writer re-reads the winner's row instead of failing.
    """

    def __init__(self, session: Session, model: type[Base]) -> None:
        self.session = session
        self.model = model

    def _lookup(self, label: str) -> int | None:
        return self.session.execute(
            select(self.model.id).where(self.model.name == label)
        ).scalar_one_or_none()

    def resolve(self, label: str) -> int:
        """Return the id for ``label``, inserting a new row the first time it is seen.

        Raises:
            StorageError: If the lookup or insert fails for any other reason.
        """
        try:
            existing = self._lookup(label)
            if existing is not None:
                return existing

            try:
                with self.session.begin_nested():
                    row = self.model(name=label)
                    self.session.add(row)
                    self.session.flush()
                    new_id = row.id
            except IntegrityError:
                # Someone else created it between our lookup and insert
                winner = self._lookup(label)
                if winner is None:
                    raise
                logger.info(
                    "dimension_insert_race",
                    table=self.model.__tablename__,
                    label=label,
                    id=winner,
                )
                return winner

            logger.debug("dimension_created", table=self.model.__tablename__, label=label, id=new_id)
            return new_id
        except SQLAlchemyError as e:
            logger.error(
                "dimension_resolve_failed",
                table=self.model.__tablename__,
                label=label,
                error=str(e),
            )
            raise StorageError(f"Failed to resolve {self.model.__tablename__} '{label}'") from e


def platform_resolver(session: Session) -> DimensionResolver:
    """Resolver for the platforms dimension."""
    return DimensionResolver(session, PlatformModel)


def interest_resolver(session: Session) -> DimensionResolver:
    """Resolver for the interests dimension."""
    return DimensionResolver(session, InterestModel)
