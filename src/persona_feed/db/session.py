"""Database session management."""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from persona_feed.config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory database
            options["poolclass"] = StaticPool
        return options
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


def configure_sqlite(engine: Engine) -> None:
    """Enable foreign keys and working SAVEPOINTs on a pysqlite engine."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # Let SQLAlchemy emit BEGIN itself so SAVEPOINT nests correctly
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url`` with backend-appropriate options."""
    new_engine = create_engine(database_url, **_engine_options(database_url))
    if new_engine.dialect.name == "sqlite":
        configure_sqlite(new_engine)
    return new_engine


# Create engine
engine = build_engine(settings.database_url)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_session() -> Generator[Session, None, None]:
    """Get a database session (for FastAPI dependency injection)."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def get_session_context() -> Generator[Session, None, None]:
    """Get a database session as a context manager (for use outside of FastAPI)."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(create_tables: bool = False) -> None:
    """Verify database connectivity, optionally creating missing tables."""
    from persona_feed.db.models import Base

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))

    if create_tables:
        Base.metadata.create_all(engine)
