"""
Session token issuance and validation (PyJWT, HS256).

A token asserts "subject authenticated successfully" until its expiry.
There is no server-side session state: validation depends only on the
token, the current time and the signing key.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

from authgate.errors import ExpiredTokenError, InvalidSignatureError, MalformedTokenError

DEFAULT_LIFETIME = timedelta(days=1)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """The subject a validated token asserts."""

    subject_id: str


class TokenIssuer:
    """Mints and validates signed, expiring session tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Clock = utc_now,
    ) -> None:
        if not secret_key:
            raise ValueError("A non-empty signing key is required")
        # exp is stored in whole seconds, so shorter lifetimes expire on issue.
        if lifetime < timedelta(seconds=1):
            raise ValueError("Token lifetime must be at least one second")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime = lifetime
        self._clock = clock

    @classmethod
    def from_settings(cls, settings) -> "TokenIssuer":
        return cls(
            secret_key=settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            lifetime=timedelta(days=settings.JWT_EXPIRY_DAYS),
        )

    def issue(self, subject_id) -> str:
        """Create a signed token for *subject_id* expiring after ``lifetime``."""
        now = self._clock()
        payload = {
            "sub": str(subject_id),
            "iat": now,
            "exp": now + self.lifetime,
            # Distinguishes tokens minted for one subject within the same second.
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def validate(self, token: str) -> AuthenticatedIdentity:
        """
        Verify *token* and return the identity it carries.

        Raises:
            InvalidSignatureError: tampered, or signed under another key.
            MalformedTokenError: not a JWT, or required claims missing.
            ExpiredTokenError: ``exp`` is not after the current time.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                # Time-based checks run below against our own clock.
                options={
                    "require": ["sub", "iat", "exp"],
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise InvalidSignatureError() from exc
        except jwt.InvalidTokenError as exc:
            raise MalformedTokenError() from exc

        subject_id = payload.get("sub")
        expires_at = payload.get("exp")
        if not isinstance(subject_id, str) or not subject_id:
            raise MalformedTokenError()
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise MalformedTokenError()

        if expires_at <= self._clock().timestamp():
            raise ExpiredTokenError()

        return AuthenticatedIdentity(subject_id=subject_id)
