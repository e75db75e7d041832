"""
Authentication endpoints: register, login, and the protected profile.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from authgate import audit
from authgate.auth import (
    get_app_settings,
    get_credential_store,
    get_current_identity,
    get_token_issuer,
)
from authgate.auth_service import authenticate, load_profile, register_account
from authgate.config import Settings
from authgate.db.store import SqlCredentialStore
from authgate.errors import (
    AuthGateError,
    DuplicateAccountError,
    InvalidCredentialsError,
    MalformedHashError,
    StoreUnavailableError,
    ValidationError,
)
from authgate.schemas import (
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    RegisterRequest,
    TokenResponse,
)
from authgate.tokens import AuthenticatedIdentity, TokenIssuer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

_ERROR_RESPONSES = {
    400: {"model": MessageResponse},
    401: {"model": MessageResponse},
    500: {"model": MessageResponse},
}


class ServerError(AuthGateError):
    """Infrastructure failure surfaced with an endpoint-specific message."""

    status_code = 500


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=201,
    responses={**_ERROR_RESPONSES, 409: {"model": MessageResponse}},
)
def register(
    body: Optional[RegisterRequest] = None,
    store: SqlCredentialStore = Depends(get_credential_store),
    issuer: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    """Create a new account and return a session token."""
    # An absent body is reported like one with every field missing.
    if body is None:
        body = RegisterRequest()
    try:
        user, token = register_account(
            store, issuer, body.name, body.email, body.password,
            rounds=settings.BCRYPT_ROUNDS,
        )
    except ValidationError:
        audit.log_register_rejected(settings, reason="invalid_input")
        raise
    except DuplicateAccountError:
        audit.log_register_rejected(settings, reason="duplicate_email", email=body.email)
        raise
    except StoreUnavailableError as exc:
        raise ServerError("Something went wrong during registration") from exc

    audit.log_register(settings, user.id, user.email)
    return TokenResponse(message="User registered successfully", token=token)


@router.post("/login", response_model=TokenResponse, responses=_ERROR_RESPONSES)
def login(
    body: Optional[LoginRequest] = None,
    store: SqlCredentialStore = Depends(get_credential_store),
    issuer: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    """Authenticate with email/password and return a session token."""
    if body is None:
        body = LoginRequest()
    try:
        user, token = authenticate(
            store, issuer, body.email, body.password,
            rounds=settings.BCRYPT_ROUNDS,
        )
    except ValidationError:
        audit.log_login_failed(settings, reason="invalid_input")
        raise
    except InvalidCredentialsError:
        audit.log_login_failed(settings, reason="invalid_credentials", email=body.email)
        raise
    except (StoreUnavailableError, MalformedHashError) as exc:
        raise ServerError("Something went wrong during login") from exc

    audit.log_login(settings, user.id, user.email)
    return TokenResponse(message="Login successful", token=token)


@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses={**_ERROR_RESPONSES, 404: {"model": MessageResponse}},
)
def get_profile(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    store: SqlCredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_app_settings),
) -> ProfileResponse:
    """Return the authenticated user's profile, without the password hash."""
    try:
        user = load_profile(store, identity)
    except StoreUnavailableError as exc:
        raise ServerError("Something went wrong fetching profile") from exc

    audit.log_profile(settings, user.id)
    return ProfileResponse(
        id=str(user.id),
        name=user.name,
        email=user.email,
        created_at=user.created_at.isoformat() if user.created_at else None,
    )
