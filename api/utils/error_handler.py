"""Error handling utilities for API endpoints."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from fastapi import HTTPException, status

from modelviz.exceptions import (
    AggregationFailedError,
    InvalidConfigError,
    NoResultsError,
    SessionNotFoundError,
)
from modelviz.log import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


def _to_http_exception(
    e: Exception, error_message: str, not_found_message: str | None
) -> HTTPException:
    if isinstance(e, InvalidConfigError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, SessionNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=not_found_message or str(e),
        )
    if isinstance(e, NoResultsError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, AggregationFailedError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": str(e),
                "results": [result.model_dump(mode="json") for result in e.results],
            },
        )
    if isinstance(e, ValueError):
        if not_found_message:
            return HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=not_found_message
            )
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.error(f"{error_message}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{error_message}: {str(e)}",
    )


def handle_api_operation(
    operation: Callable[[], T],
    error_message: str = "Operation failed",
    not_found_message: str | None = None,
) -> T:
    """Run a sync operation, mapping domain errors to HTTP errors."""
    try:
        return operation()
    except HTTPException:
        raise
    except Exception as e:
        raise _to_http_exception(e, error_message, not_found_message) from e


async def handle_async_api_operation(
    operation: Callable[[], Awaitable[T]],
    error_message: str = "Operation failed",
    not_found_message: str | None = None,
) -> T:
    """Run an async operation, mapping domain errors to HTTP errors.

    - ``InvalidConfigError`` -> 400
    - ``SessionNotFoundError`` -> 404
    - ``NoResultsError`` -> 409
    - ``AggregationFailedError`` -> 502, with the per-model results
    - other ``ValueError`` -> 404 when ``not_found_message`` is given, else 400
    - anything else -> 500
    """
    try:
        return await operation()
    except HTTPException:
        raise
    except Exception as e:
        raise _to_http_exception(e, error_message, not_found_message) from e
