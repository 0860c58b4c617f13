"""
Global middleware and error handlers.

Domain errors are turned into HTTP responses here so routes and flows only
raise.  Response bodies stay generic: a client cannot tell a wrong password
from an unknown account, or a wrong code from an expired one.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from auth.errors import (
    AuthError,
    AuthServiceError,
    DuplicateAccountError,
    InvalidRequestError,
)

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI) -> None:
    """Attach any app-level middleware."""

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug("%s %s — %.3fs", request.method, request.url.path, elapsed)
        return response


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def on_auth_error(request: Request, exc: AuthError):
        logger.info("%s %s unauthorized: %s", request.method, request.url.path, type(exc).__name__)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Unauthorized"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(DuplicateAccountError)
    async def on_duplicate(request: Request, exc: DuplicateAccountError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "Email already registered"},
        )

    @app.exception_handler(InvalidRequestError)
    async def on_invalid_request(request: Request, exc: InvalidRequestError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.exception_handler(AuthServiceError)
    async def on_internal(request: Request, exc: AuthServiceError):
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal error"},
        )
