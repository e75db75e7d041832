"""
Error taxonomy for the authentication subsystem and the FastAPI handlers
that render it.

Every error carries the HTTP status it maps to at the boundary. All token
failures share one generic 401 body so a caller cannot tell a missing token
from a forged or expired one.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Not authorized, token missing or invalid"
SERVER_ERROR_MESSAGE = "Something went wrong"


class AuthGateError(Exception):
    """Base class for every error raised by the auth core."""

    status_code = 500
    default_message = SERVER_ERROR_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthGateError):
    """Missing or malformed input; the caller may resubmit."""

    status_code = 400
    default_message = "Invalid request"


class DuplicateAccountError(AuthGateError):
    status_code = 409
    default_message = "User already exists with this email"


class InvalidCredentialsError(AuthGateError):
    """Unknown email or wrong password; deliberately indistinguishable."""

    status_code = 401
    default_message = "Invalid email or password"


class UserNotFoundError(AuthGateError):
    status_code = 404
    default_message = "User not found"


class StoreUnavailableError(AuthGateError):
    """The credential store failed for infrastructure reasons."""

    status_code = 500


class MalformedHashError(AuthGateError):
    """A stored password hash could not be parsed."""

    status_code = 500


# ── Token failures ───────────────────────────────────────────────────────────

class TokenError(AuthGateError):
    status_code = 401
    default_message = UNAUTHORIZED_MESSAGE


class MissingTokenError(TokenError):
    pass


class InvalidSignatureError(TokenError):
    pass


class MalformedTokenError(TokenError):
    pass


class ExpiredTokenError(TokenError):
    pass


# ── Handlers ─────────────────────────────────────────────────────────────────

async def auth_error_handler(request: Request, exc: AuthGateError) -> JSONResponse:
    """Render a domain error as ``{"message": ...}`` with its status."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s", type(exc).__name__, request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def token_error_handler(request: Request, exc: TokenError) -> JSONResponse:
    """Collapse every token failure into one generic 401."""
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, type(exc).__name__)
    return JSONResponse(
        status_code=401,
        content={"message": UNAUTHORIZED_MESSAGE},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """A body that is not a JSON object of strings is a 400, not a 422."""
    return JSONResponse(
        status_code=400,
        content={"message": ValidationError.default_message},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": SERVER_ERROR_MESSAGE})


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the global exception handlers on *app*."""
    app.add_exception_handler(TokenError, token_error_handler)
    app.add_exception_handler(AuthGateError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
