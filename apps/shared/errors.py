"""
Secure Error Handling

Provides utilities for handling errors securely without leaking sensitive information.
"""

import logging
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
ERROR_ID_HEADER = "X-Error-ID"


class StoreError(Exception):
    """Raised when the document store rejects or fails an operation."""


class RecordNotFound(StoreError):
    """Lookup by id matched nothing. Reported to clients like any other store failure."""


def log_error(error: Exception, context: str) -> str:
    """
    Log full error details server-side and return an ID to correlate them.

    Args:
        error: The exception that occurred
        context: Description of what operation failed (e.g., "GET /blog-posts")

    Returns:
        Short error ID to hand back to the client
    """
    # Generate unique error ID for correlation
    error_id = str(uuid.uuid4())[:8]

    # Log full error server-side
    logger.error(
        f"{context} failed [{error_id}]: {type(error).__name__}: {str(error)}",
        exc_info=error,
    )
    return error_id


def internal_error_response(error_id: str) -> JSONResponse:
    """Opaque 500 body. The cause stays in the server log."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": INTERNAL_ERROR_MESSAGE},
        headers={ERROR_ID_HEADER: error_id},
    )


def validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request body"


def setup_error_handlers(app: FastAPI) -> None:
    """Collapse store failures into a generic 500 and body errors into a 400."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = validation_message(exc)
        logger.warning(f"Rejected {request.method} {request.url.path}: {message}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": message},
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return internal_error_response(log_error(exc, f"{request.method} {request.url.path}"))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        return internal_error_response(log_error(exc, f"{request.method} {request.url.path}"))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        return internal_error_response(log_error(exc, f"{request.method} {request.url.path}"))
