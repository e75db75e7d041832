"""
FastAPI authentication dependencies.

``get_current_identity`` guards protected routes: it requires an
``Authorization: Bearer <token>`` header carrying a valid session token,
and stores the resulting identity on ``request.state.identity``.
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from authgate.config import Settings
from authgate.db.connection import get_db_session
from authgate.db.store import SqlCredentialStore
from authgate.errors import MissingTokenError
from authgate.tokens import AuthenticatedIdentity, TokenIssuer

_bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings loaded once at startup."""
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_credential_store(db: Session = Depends(get_db_session)) -> SqlCredentialStore:
    return SqlCredentialStore(db)


def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthenticatedIdentity:
    """
    Validate the Bearer token and return the authenticated identity.

    Raises:
        MissingTokenError if there is no bearer token.
        InvalidSignatureError, MalformedTokenError or ExpiredTokenError from
        the issuer. All of them render as the same 401.
    """
    if credentials is None or not credentials.credentials:
        raise MissingTokenError()

    identity = issuer.validate(credentials.credentials)
    request.state.identity = identity
    return identity
