"""Persona repository: personas and their platform/interest links."""

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from persona_feed.db.models import (
    CompanyModel,
    InterestModel,
    PersonaModel,
    PlatformModel,
    content_personas,
)
from persona_feed.domain.enums import CompanyStatus
from persona_feed.domain.errors import (
    NotFoundError,
    PersonaFeedError,
    StorageError,
    ValidationError,
)
from persona_feed.domain.models import LinkUpdate, NamedRef, PersonaWithRelations
from persona_feed.logging import get_logger
from persona_feed.services.associations import (
    CONTENT_PERSONAS,
    PERSONA_INTERESTS,
    PERSONA_PLATFORMS,
    AssociationSynchronizer,
    PartialSyncError,
    Relation,
)
from persona_feed.services.hydration import execute, load_named_refs

logger = get_logger(__name__)

WRITABLE_COLUMNS = frozenset({"name", "description", "age_range", "active", "company_id"})


class PersonaRepository:
    """Owns personas; platforms and interests are linked by name."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.links = AssociationSynchronizer(session)

    def _commit(self, what: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("persona_commit_failed", what=what, error=str(e))
            raise StorageError(f"Failed to save {what}") from e

    def _apply_links(self, persona_id: int, updates: Iterable[tuple[Relation, LinkUpdate]]) -> None:
        try:
            for relation, link_update in updates:
                if link_update.is_set:
                    self.links.sync(persona_id, relation, link_update.values)
        except PartialSyncError:
            self._commit("persona links")
            raise
        except PersonaFeedError:
            self.session.rollback()
            raise
        self._commit("persona links")

    def company_exists(self, company_id: int) -> bool:
        return (
            execute(
                self.session,
                select(CompanyModel.id).where(CompanyModel.id == company_id),
                "company",
            ).scalar_one_or_none()
            is not None
        )

    def validate_company(self, company_id: int | None) -> None:
        """Reject a company that does not exist or is inactive."""
        if company_id is None:
            return
        status = execute(
            self.session,
            select(CompanyModel.status).where(CompanyModel.id == company_id),
            "company",
        ).scalar_one_or_none()
        if status is None:
            raise ValidationError("Invalid company ID")
        if status != CompanyStatus.ACTIVE.value:
            raise ValidationError("Company is inactive")

    def create(
        self,
        fields: Mapping[str, Any],
        platforms: Iterable[str] | None = None,
        interests: Iterable[str] | None = None,
    ) -> int:
        """Insert a persona and link it to the named platforms and interests."""
        unknown = set(fields) - WRITABLE_COLUMNS
        if unknown:
            raise ValidationError(f"Unknown persona field(s): {', '.join(sorted(unknown))}")
        if not fields.get("name"):
            raise ValidationError("Persona name is required")

        values = {key: value for key, value in fields.items() if value is not None}
        persona = PersonaModel(**values)
        try:
            self.session.add(persona)
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("persona_insert_failed", name=fields.get("name"), error=str(e))
            raise StorageError("Failed to create persona") from e
        persona_id = persona.id
        self._commit("persona")

        platforms = list(platforms or [])
        interests = list(interests or [])
        self._apply_links(
            persona_id,
            [
                (PERSONA_PLATFORMS, LinkUpdate.replace(platforms) if platforms else LinkUpdate.keep()),
                (PERSONA_INTERESTS, LinkUpdate.replace(interests) if interests else LinkUpdate.keep()),
            ],
        )
        logger.info("persona_created", persona_id=persona_id, name=fields.get("name"))
        return persona_id

    def update(
        self,
        persona_id: int,
        fields: Mapping[str, Any],
        platforms: LinkUpdate | None = None,
        interests: LinkUpdate | None = None,
    ) -> None:
        """Write the given columns and replace any relation whose update is set."""
        platforms = platforms or LinkUpdate.keep()
        interests = interests or LinkUpdate.keep()
        unknown = set(fields) - WRITABLE_COLUMNS
        if unknown:
            raise ValidationError(f"Unknown persona field(s): {', '.join(sorted(unknown))}")

        if fields:
            try:
                self.session.execute(
                    update(PersonaModel).where(PersonaModel.id == persona_id).values(**fields)
                )
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.error("persona_update_failed", persona_id=persona_id, error=str(e))
                raise StorageError("Failed to update persona") from e
            self._commit("persona")

        self._apply_links(
            persona_id, [(PERSONA_PLATFORMS, platforms), (PERSONA_INTERESTS, interests)]
        )
        logger.info("persona_updated", persona_id=persona_id, fields=sorted(fields))

    def delete(self, persona_id: int) -> None:
        """Remove the persona's platform, interest and content links, then the persona.

        Raises:
            NotFoundError: If the persona does not exist.
        """
        exists = execute(
            self.session,
            select(PersonaModel.id).where(PersonaModel.id == persona_id),
            "persona",
        ).scalar_one_or_none()
        if exists is None:
            raise NotFoundError("Persona not found")

        self.links.clear(persona_id, PERSONA_PLATFORMS)
        self.links.clear(persona_id, PERSONA_INTERESTS)
        self.links.clear_related(persona_id, CONTENT_PERSONAS)
        try:
            self.session.execute(delete(PersonaModel).where(PersonaModel.id == persona_id))
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("persona_delete_failed", persona_id=persona_id, error=str(e))
            raise StorageError("Failed to delete persona") from e
        self._commit("persona deletion")
        logger.info("persona_deleted", persona_id=persona_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _hydrate(self, results: list[Any]) -> list[PersonaWithRelations]:
        persona_ids = [persona.id for persona, _ in results]
        platforms = load_named_refs(self.session, PERSONA_PLATFORMS, PlatformModel, persona_ids)
        interests = load_named_refs(self.session, PERSONA_INTERESTS, InterestModel, persona_ids)

        counts: dict[int, int] = {}
        if persona_ids:
            count_rows = execute(
                self.session,
                select(content_personas.c.persona_id, func.count())
                .where(content_personas.c.persona_id.in_(persona_ids))
                .group_by(content_personas.c.persona_id),
                "persona content counts",
            )
            counts = {persona_id: count for persona_id, count in count_rows}

        return [
            PersonaWithRelations(
                id=persona.id,
                name=persona.name,
                description=persona.description,
                age_range=persona.age_range,
                active=bool(persona.active),
                company_id=persona.company_id,
                company_name=company_name,
                platforms=list(platforms.get(persona.id, [])),
                interests=list(interests.get(persona.id, [])),
                content_count=counts.get(persona.id, 0),
                created_at=persona.created_at,
                updated_at=persona.updated_at,
            )
            for persona, company_name in results
        ]

    def _base_query(self):
        return select(PersonaModel, CompanyModel.name.label("company_name")).outerjoin(
            CompanyModel, PersonaModel.company_id == CompanyModel.id
        )

    def find_by_id(self, persona_id: int) -> PersonaWithRelations | None:
        results = execute(
            self.session,
            self._base_query().where(PersonaModel.id == persona_id),
            "persona",
        ).all()
        if not results:
            return None
        return self._hydrate(results)[0]

    def list_personas(
        self,
        company_id: int | None = None,
        active: bool | None = None,
    ) -> list[PersonaWithRelations]:
        """Personas ordered by name, optionally filtered by company and active flag."""
        statement = self._base_query()
        if company_id is not None:
            statement = statement.where(PersonaModel.company_id == company_id)
        if active is not None:
            statement = statement.where(PersonaModel.active == active)
        statement = statement.order_by(PersonaModel.name.asc(), PersonaModel.id.asc())
        return self._hydrate(execute(self.session, statement, "personas").all())

    def list_platforms(self) -> list[NamedRef]:
        """The full platforms dimension, sorted by name."""
        rows = execute(
            self.session,
            select(PlatformModel.id, PlatformModel.name).order_by(PlatformModel.name.asc()),
            "platforms",
        )
        return [NamedRef(id=row.id, name=row.name) for row in rows]

    def list_interests(self) -> list[NamedRef]:
        """The full interests dimension, sorted by name."""
        rows = execute(
            self.session,
            select(InterestModel.id, InterestModel.name).order_by(InterestModel.name.asc()),
            "interests",
        )
        return [NamedRef(id=row.id, name=row.name) for row in rows]
