"""SQLAlchemy ORM models."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    true,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Owners (CRUD lives outside this service)
# =============================================================================


class CompanyModel(Base):
    """Company that owns personas and content."""

    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), server_default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class UserModel(Base):
    """User account, referenced as the author of content."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    company_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


# =============================================================================
# Content & personas
# =============================================================================


class ContentModel(Base):
    """Marketing content item ORM model."""

    __tablename__ = "content"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), server_default="draft", index=True)
    content_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    author_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    company_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    scheduled_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    publish_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    # Engagement counters, only ever incremented
    views: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    likes: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    comments: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    shares: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    author: Mapped["UserModel | None"] = relationship("UserModel")
    company: Mapped["CompanyModel | None"] = relationship("CompanyModel")


class PersonaModel(Base):
    """Persona (audience segment) ORM model."""

    __tablename__ = "personas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    age_range: Mapped[str | None] = mapped_column(String(50), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, server_default=true())
    company_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    company: Mapped["CompanyModel | None"] = relationship("CompanyModel")


# =============================================================================
# Dimensions (created lazily by name, never deleted here)
# =============================================================================


class PlatformModel(Base):
    """Distribution platform dimension row."""

    __tablename__ = "platforms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class InterestModel(Base):
    """Persona interest dimension row."""

    __tablename__ = "interests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


# =============================================================================
# Junction tables (pure key pairs, no payload)
# =============================================================================


def _junction(name: str, owner: str, owner_table: str, related: str, related_table: str) -> Table:
    return Table(
        name,
        Base.metadata,
        Column(
            owner,
            Integer,
            ForeignKey(f"{owner_table}.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        Column(
            related,
            Integer,
            ForeignKey(f"{related_table}.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )


content_personas = _junction("content_personas", "content_id", "content", "persona_id", "personas")
content_platforms = _junction(
    "content_platforms", "content_id", "content", "platform_id", "platforms"
)
persona_platforms = _junction(
    "persona_platforms", "persona_id", "personas", "platform_id", "platforms"
)
persona_interests = _junction(
    "persona_interests", "persona_id", "personas", "interest_id", "interests"
)
