"""Persona management endpoints."""

from datetime import datetime

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from persona_feed.api.deps import PersonaRepositoryDep
from persona_feed.api.errors import domain_errors
from persona_feed.api.schemas import MessageResponse, NamedRefResponse
from persona_feed.domain.models import LinkUpdate
from persona_feed.logging import get_logger

router = APIRouter(prefix="/personas", tags=["Personas"])
logger = get_logger(__name__)


class PersonaResponse(BaseModel):
    """Persona with its company, platforms, interests and content count."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    age_range: str | None
    active: bool
    company_id: int | None
    company_name: str | None
    platforms: list[NamedRefResponse]
    interests: list[NamedRefResponse]
    content_count: int
    created_at: datetime | None
    updated_at: datetime | None


class CreatePersonaRequest(BaseModel):
    """Request to create a persona."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    age_range: str | None = Field(None, max_length=50)
    company_id: int | None = None
    platforms: list[str] = Field(default_factory=list, description="Platform names")
    interests: list[str] = Field(default_factory=list, description="Interest names")


class UpdatePersonaRequest(BaseModel):
    """Partial persona update; omitted lists leave links unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    age_range: str | None = Field(None, max_length=50)
    active: bool | None = None
    company_id: int | None = None
    platforms: list[str] | None = None
    interests: list[str] | None = None


class PersonaMutationResponse(BaseModel):
    """Acknowledgement carrying the resulting persona."""

    message: str
    persona: PersonaResponse | None


_LINK_FIELDS = {"platforms", "interests"}


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Persona not found")


@router.get(
    "",
    response_model=list[PersonaResponse],
    summary="List personas",
    description="List personas ordered by name, optionally by company and active flag.",
)
async def list_personas(
    personas: PersonaRepositoryDep,
    company: int | None = Query(None, description="Company id"),
    active: bool | None = Query(None, description="Only active (true) or inactive (false)"),
) -> list[PersonaResponse]:
    """List personas."""
    with domain_errors("Error retrieving personas"):
        items = personas.list_personas(company_id=company, active=active)
    return [PersonaResponse.model_validate(item) for item in items]


@router.get(
    "/platforms/all",
    response_model=list[NamedRefResponse],
    summary="List platforms",
)
async def list_platforms(personas: PersonaRepositoryDep) -> list[NamedRefResponse]:
    """Every known platform, sorted by name."""
    with domain_errors("Error retrieving platforms"):
        items = personas.list_platforms()
    return [NamedRefResponse.model_validate(item) for item in items]


@router.get(
    "/interests/all",
    response_model=list[NamedRefResponse],
    summary="List interests",
)
async def list_interests(personas: PersonaRepositoryDep) -> list[NamedRefResponse]:
    """Every known interest, sorted by name."""
    with domain_errors("Error retrieving interests"):
        items = personas.list_interests()
    return [NamedRefResponse.model_validate(item) for item in items]


@router.get(
    "/company/{company_id}",
    response_model=list[PersonaResponse],
    summary="List company personas",
)
async def list_company_personas(
    company_id: int,
    personas: PersonaRepositoryDep,
) -> list[PersonaResponse]:
    """Personas belonging to one company."""
    with domain_errors("Error retrieving personas"):
        if not personas.company_exists(company_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
        items = personas.list_personas(company_id=company_id)
    return [PersonaResponse.model_validate(item) for item in items]


@router.get(
    "/{persona_id}",
    response_model=PersonaResponse,
    summary="Get persona",
)
async def get_persona(persona_id: int, personas: PersonaRepositoryDep) -> PersonaResponse:
    """Get a persona by ID."""
    with domain_errors("Error retrieving persona"):
        item = personas.find_by_id(persona_id)
    if item is None:
        raise _not_found()
    return PersonaResponse.model_validate(item)


@router.post(
    "",
    response_model=PersonaMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create persona",
)
async def create_persona(
    request: CreatePersonaRequest,
    personas: PersonaRepositoryDep,
) -> PersonaMutationResponse:
    """Create a persona and link its platforms and interests by name."""
    fields = request.model_dump(exclude=_LINK_FIELDS)
    with domain_errors("Error creating persona"):
        personas.validate_company(request.company_id)
        persona_id = personas.create(fields, request.platforms, request.interests)
        item = personas.find_by_id(persona_id)

    return PersonaMutationResponse(
        message="Persona created successfully",
        persona=PersonaResponse.model_validate(item) if item else None,
    )


@router.put(
    "/{persona_id}",
    response_model=PersonaMutationResponse,
    summary="Update persona",
)
async def update_persona(
    persona_id: int,
    request: UpdatePersonaRequest,
    personas: PersonaRepositoryDep,
) -> PersonaMutationResponse:
    """Update the fields present in the body."""
    present = request.model_fields_set
    fields = request.model_dump(include=present - _LINK_FIELDS)
    if fields.get("name") is None:
        fields.pop("name", None)
    if fields.get("active") is None:
        fields.pop("active", None)

    with domain_errors("Error updating persona"):
        if personas.find_by_id(persona_id) is None:
            raise _not_found()
        if "company_id" in fields:
            personas.validate_company(fields["company_id"])
        personas.update(
            persona_id,
            fields,
            platforms=LinkUpdate.from_optional(
                request.platforms if "platforms" in present else None
            ),
            interests=LinkUpdate.from_optional(
                request.interests if "interests" in present else None
            ),
        )
        item = personas.find_by_id(persona_id)

    return PersonaMutationResponse(
        message="Persona updated successfully",
        persona=PersonaResponse.model_validate(item) if item else None,
    )


@router.delete(
    "/{persona_id}",
    response_model=MessageResponse,
    summary="Delete persona",
    description="Delete a persona and its platform, interest and content links.",
)
async def delete_persona(persona_id: int, personas: PersonaRepositoryDep) -> MessageResponse:
    """Delete a persona."""
    with domain_errors("Error deleting persona"):
        personas.delete(persona_id)
    return MessageResponse(message="Persona deleted successfully")
