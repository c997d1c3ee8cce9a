"""Translation of domain errors into HTTP responses."""

from collections.abc import Generator
from contextlib import contextmanager

from fastapi import HTTPException, status

from persona_feed.domain.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from persona_feed.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def domain_errors(failure_message: str) -> Generator[None, None, None]:
    """Map domain errors raised inside the block onto HTTP status codes.

    Storage failures are logged and reported with ``failure_message`` only;
    their details never reach the client.
    """
    try:
        yield
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StorageError as e:
        logger.error("request_storage_error", message=failure_message, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=failure_message,
        )
