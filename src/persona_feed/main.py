"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from persona_feed import __version__
from persona_feed.api.routes import content, feed, health, personas
from persona_feed.config import settings
from persona_feed.logging import get_logger, setup_logging

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("application_starting", version=__version__)

    # Startup: verify database connection
    try:
        from persona_feed.db.session import engine

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("database_connected")
    except SQLAlchemyError as e:
        logger.error("database_connection_failed", error=str(e))
        # Don't raise - let health checks report the issue

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Persona Feed",
    description="Persona-targeted marketing content and feed service",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health.router)
app.include_router(content.router, prefix="/api/v1")
app.include_router(feed.router, prefix="/api/v1")
app.include_router(personas.router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Root endpoint pointing at the docs."""
    return {
        "name": "Persona Feed",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "persona_feed.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
