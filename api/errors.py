"""
Exception handlers — map auth/ownership errors to HTTP responses.

Responses are deliberately generic: a login failure never says whether
the email exists, a token failure never says why it failed, and a task
owned by someone else looks exactly like a task that does not exist.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from auth.errors import (
    DuplicateIdentity,
    InputTooLarge,
    InvalidCredentials,
    NotFound,
    TokenError,
    Unauthenticated,
)

logger = logging.getLogger(__name__)

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


def _error(status_code: int, detail: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the auth error → HTTP mapping to ``app``."""

    @app.exception_handler(InvalidCredentials)
    async def invalid_credentials(request: Request, exc: InvalidCredentials):
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid email or password")

    @app.exception_handler(Unauthenticated)
    async def unauthenticated(request: Request, exc: Unauthenticated):
        return _error(status.HTTP_401_UNAUTHORIZED, "Not authenticated", _UNAUTHORIZED_HEADERS)

    @app.exception_handler(TokenError)
    async def token_error(request: Request, exc: TokenError):
        logger.debug("Token rejected at boundary: %s", type(exc).__name__)
        return _error(status.HTTP_401_UNAUTHORIZED, "Not authenticated", _UNAUTHORIZED_HEADERS)

    @app.exception_handler(DuplicateIdentity)
    async def duplicate_identity(request: Request, exc: DuplicateIdentity):
        return _error(status.HTTP_409_CONFLICT, "Email already registered")

    @app.exception_handler(NotFound)
    async def not_found(request: Request, exc: NotFound):
        return _error(status.HTTP_404_NOT_FOUND, str(exc) or "Not found")

    @app.exception_handler(InputTooLarge)
    async def input_too_large(request: Request, exc: InputTooLarge):
        return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Input too large")

    @app.exception_handler(SQLAlchemyError)
    async def database_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
