"""
Registration, login and profile orchestration.

Composes the credential store, password hashing and the token issuer.
Framework-free: callers get a result or one of the errors from
``authgate.errors``.
"""

from __future__ import annotations

import uuid

from authgate.db.store import CredentialStore, NewUser, UserRecord
from authgate.errors import (
    DuplicateAccountError,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
)
from authgate.passwords import burn_verification, hash_password, verify_password
from authgate.tokens import AuthenticatedIdentity, TokenIssuer

REGISTER_FIELDS_MESSAGE = "Name, email, and password are required"
LOGIN_FIELDS_MESSAGE = "Email and password are required"
ENCODING_MESSAGE = "Fields must be valid UTF-8 text"


def _present(*values) -> bool:
    return all(isinstance(v, str) and v != "" for v in values)


def _require_utf8(*values: str) -> None:
    # JSON allows lone surrogates; neither bcrypt nor the database does.
    try:
        for value in values:
            value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationError(ENCODING_MESSAGE) from exc


def register_account(
    store: CredentialStore,
    issuer: TokenIssuer,
    name: str | None,
    email: str | None,
    password: str | None,
    rounds: int | None = None,
) -> tuple[UserRecord, str]:
    """
    Create an account and return it with a fresh token.

    Raises ValidationError for missing fields and DuplicateAccountError if
    the email is already registered.
    """
    if not _present(name, email, password):
        raise ValidationError(REGISTER_FIELDS_MESSAGE)
    _require_utf8(name, email, password)

    if store.find_by_email(email) is not None:
        raise DuplicateAccountError()

    password_hash = hash_password(password, rounds=rounds)
    # create() re-checks uniqueness at the storage level.
    user = store.create(NewUser(name=name, email=email, password_hash=password_hash))
    return user, issuer.issue(user.id)


def authenticate(
    store: CredentialStore,
    issuer: TokenIssuer,
    email: str | None,
    password: str | None,
    rounds: int | None = None,
) -> tuple[UserRecord, str]:
    """
    Validate an email/password pair and return the user with a fresh token.

    Unknown email and wrong password raise the same InvalidCredentialsError.
    """
    if not _present(email, password):
        raise ValidationError(LOGIN_FIELDS_MESSAGE)
    _require_utf8(email, password)

    user = store.find_by_email(email)
    if user is None:
        burn_verification(password, rounds=rounds)
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()

    return user, issuer.issue(user.id)


def load_profile(store: CredentialStore, identity: AuthenticatedIdentity) -> UserRecord:
    """Resolve the authenticated subject to its user record."""
    try:
        user_id = uuid.UUID(identity.subject_id)
    except ValueError as exc:
        raise UserNotFoundError() from exc

    user = store.find_by_id(user_id)
    if user is None:
        raise UserNotFoundError()
    return user
