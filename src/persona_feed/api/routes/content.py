"""Content management, feed and engagement endpoints."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from persona_feed.api.deps import (
    ContentRepositoryDep,
    CurrentUserDep,
    MetricsAccumulatorDep,
)
from persona_feed.api.errors import domain_errors
from persona_feed.api.schemas import ContentResponse, FeedRowResponse, MessageResponse
from persona_feed.domain.enums import ContentStatus, ContentType
from persona_feed.domain.models import LinkUpdate
from persona_feed.logging import get_logger

router = APIRouter(prefix="/content", tags=["Content"])
logger = get_logger(__name__)

EMPTY_FEED_MESSAGE = "No content found for that persona & company"


class CreateContentRequest(BaseModel):
    """Request to create a content item."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=3, max_length=255)
    description: str | None = None
    type: ContentType
    status: ContentStatus = ContentStatus.DRAFT
    content_url: HttpUrl | None = None
    thumbnail_url: HttpUrl | None = None
    scheduled_date: datetime | None = None
    personas: list[int] | None = Field(default=None, description="Persona ids to link")
    platforms: list[int] | None = Field(default=None, description="Platform ids to link")
    company_id: int | None = None


class UpdateContentRequest(BaseModel):
    """Partial content update.

    Only fields present in the body are written. ``personas`` / ``platforms``
    absent leaves links unchanged; present (even ``[]``) replaces them.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(None, min_length=3, max_length=255)
    description: str | None = None
    type: ContentType | None = None
    status: ContentStatus | None = None
    content_url: HttpUrl | None = None
    thumbnail_url: HttpUrl | None = None
    scheduled_date: datetime | None = None
    personas: list[int] | None = None
    platforms: list[int] | None = None
    company_id: int | None = None


class BulkContentItem(CreateContentRequest):
    """One item of a bulk import."""

    status: ContentStatus | None = None
    publish_date: datetime | None = None
    author_id: int | None = None


class BulkCreateRequest(BaseModel):
    """Request to create many content items."""

    items: list[BulkContentItem] = Field(..., min_length=1)


class BulkCreateResponse(BaseModel):
    """Ids of created content, in request order."""

    ids: list[int]
    count: int


class ContentMutationResponse(BaseModel):
    """Acknowledgement carrying the resulting content."""

    message: str
    content: ContentResponse | None


class FeedResponse(BaseModel):
    """Persona+company feed.

    ``message`` is set only when ``items`` is empty, so clients can tell
    "no content" apart from a failed request.
    """

    items: list[FeedRowResponse]
    total: int
    message: str | None = None


class EngagementRequest(BaseModel):
    """A single viewer engagement."""

    type: str = Field(..., description="view, like, comment or share")


_NON_NULL_COLUMNS = {"title", "type", "status"}
_LINK_FIELDS = {"personas", "platforms"}


def _column_values(request: BaseModel, names: set[str]) -> dict[str, Any]:
    """Turn request fields into column values (URLs to str, enums to values)."""
    values: dict[str, Any] = {}
    for name in names:
        value = getattr(request, name)
        if value is None and name in _NON_NULL_COLUMNS:
            continue
        if isinstance(value, HttpUrl):
            value = str(value)
        elif isinstance(value, (ContentType, ContentStatus)):
            value = value.value
        values[name] = value
    return values


@router.get(
    "",
    response_model=list[ContentResponse],
    summary="List content",
    description="List all content, published first, newest first within each status.",
)
async def list_content(content: ContentRepositoryDep) -> list[ContentResponse]:
    """List all content items."""
    with domain_errors("Error retrieving content"):
        items = content.list_all()
    return [ContentResponse.model_validate(item) for item in items]


@router.post(
    "/bulk",
    response_model=BulkCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Bulk create content",
    description="Create many content items. Items before a failure stay created.",
)
async def bulk_create_content(
    request: BulkCreateRequest,
    content: ContentRepositoryDep,
    user_id: CurrentUserDep,
) -> BulkCreateResponse:
    """Create content items in sequence."""
    items = []
    for item in request.items:
        values = _column_values(item, item.model_fields_set - _LINK_FIELDS)
        if "author_id" not in values and user_id is not None:
            values["author_id"] = user_id
        values["personas"] = item.personas or []
        values["platforms"] = item.platforms or []
        items.append(values)

    with domain_errors("Error creating content"):
        ids = content.bulk_create(items)
    return BulkCreateResponse(ids=ids, count=len(ids))


@router.get(
    "/persona/{persona_id}/company/{company_id}",
    response_model=FeedResponse,
    summary="Persona feed",
    description="Content for a persona within a company, newest publish date first.",
)
async def get_by_persona_and_company(
    persona_id: int,
    company_id: int,
    content: ContentRepositoryDep,
) -> FeedResponse:
    """Get the feed for a persona and company."""
    with domain_errors("Error retrieving content"):
        rows = content.get_by_persona_and_company(persona_id, company_id)

    return FeedResponse(
        items=[FeedRowResponse.model_validate(row) for row in rows],
        total=len(rows),
        message=None if rows else EMPTY_FEED_MESSAGE,
    )


@router.get(
    "/{content_id}",
    response_model=ContentResponse,
    summary="Get content",
    description="Get a content item with its platforms and personas.",
)
async def get_content(content_id: int, content: ContentRepositoryDep) -> ContentResponse:
    """Get a content item by ID."""
    with domain_errors("Error retrieving content"):
        item = content.find_by_id(content_id)

    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
    return ContentResponse.model_validate(item)


@router.post(
    "",
    response_model=ContentMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create content",
)
async def create_content(
    request: CreateContentRequest,
    content: ContentRepositoryDep,
    user_id: CurrentUserDep,
) -> ContentMutationResponse:
    """Create a content item and link its personas and platforms."""
    values = _column_values(request, set(CreateContentRequest.model_fields) - _LINK_FIELDS)
    values["author_id"] = user_id

    with domain_errors("Error creating content"):
        content_id = content.create(values, request.personas, request.platforms)
        item = content.find_by_id(content_id)

    return ContentMutationResponse(
        message="Content created successfully!",
        content=ContentResponse.model_validate(item) if item else None,
    )


@router.put(
    "/{content_id}",
    response_model=ContentMutationResponse,
    summary="Update content",
)
async def update_content(
    content_id: int,
    request: UpdateContentRequest,
    content: ContentRepositoryDep,
) -> ContentMutationResponse:
    """Update the fields present in the body."""
    with domain_errors("Error updating content"):
        if content.find_by_id(content_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")

        present = request.model_fields_set
        content.update(
            content_id,
            _column_values(request, present - _LINK_FIELDS),
            personas=LinkUpdate.from_optional(request.personas if "personas" in present else None),
            platforms=LinkUpdate.from_optional(
                request.platforms if "platforms" in present else None
            ),
        )
        item = content.find_by_id(content_id)

    return ContentMutationResponse(
        message="Content updated successfully",
        content=ContentResponse.model_validate(item) if item else None,
    )


@router.delete(
    "/{content_id}",
    response_model=MessageResponse,
    summary="Delete content",
    description="Delete a content item after removing its persona and platform links.",
)
async def delete_content(content_id: int, content: ContentRepositoryDep) -> MessageResponse:
    """Delete a content item."""
    with domain_errors("Error deleting content"):
        if content.find_by_id(content_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
        content.delete(content_id)

    return MessageResponse(message="Content deleted successfully")


@router.post(
    "/{content_id}/publish",
    response_model=ContentMutationResponse,
    summary="Publish content",
    description="Publish a content item. Publishing twice is rejected with 409.",
)
async def publish_content(content_id: int, content: ContentRepositoryDep) -> ContentMutationResponse:
    """Publish a content item."""
    with domain_errors("Error publishing content"):
        content.publish(content_id)
        item = content.find_by_id(content_id)

    return ContentMutationResponse(
        message="Content published successfully",
        content=ContentResponse.model_validate(item) if item else None,
    )


@router.post(
    "/{content_id}/metrics",
    response_model=MessageResponse,
    summary="Record engagement",
    description="Record one view, like, comment or share (always a +1 increment).",
)
async def record_engagement(
    content_id: int,
    request: EngagementRequest,
    metrics: MetricsAccumulatorDep,
) -> MessageResponse:
    """Record a viewer engagement."""
    with domain_errors("Error recording engagement"):
        metrics.record(content_id, request.type)

    return MessageResponse(message=f"{request.type} recorded successfully")
