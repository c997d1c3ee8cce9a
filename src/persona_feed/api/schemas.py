"""Response models shared by the API routers."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from persona_feed.domain.enums import ContentStatus, ContentType


class NamedRefResponse(BaseModel):
    """An `{id, name}` pair."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class ContentFieldsResponse(BaseModel):
    """Columns common to every content representation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None
    type: ContentType
    status: ContentStatus
    content_url: str | None
    thumbnail_url: str | None
    company_id: int | None
    author_id: int | None
    author_name: str | None
    scheduled_date: datetime | None
    publish_date: datetime | None
    views: int
    likes: int
    comments: int
    shares: int
    created_at: datetime | None
    updated_at: datetime | None


class ContentResponse(ContentFieldsResponse):
    """Content with its platform and persona links."""

    platforms: list[NamedRefResponse]
    personas: list[NamedRefResponse]


class FeedRowResponse(ContentFieldsResponse):
    """Feed entry with platform names and personas."""

    platform_names: list[str]
    personas: list[NamedRefResponse]


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
