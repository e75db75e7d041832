"""
Password hashing and verification (bcrypt).

Plaintext passwords only ever pass through these functions; nothing here
logs or stores them.
"""

from functools import lru_cache

import bcrypt

from authgate.errors import MalformedHashError, ValidationError

DEFAULT_ROUNDS = 10

# bcrypt ignores (or, in newer releases, rejects) input beyond 72 bytes.
MAX_PASSWORD_BYTES = 72


@lru_cache()
def dummy_hash(rounds: int = DEFAULT_ROUNDS) -> bytes:
    """
    Throw-away hash verified against when a login names an unknown email.

    Built with the same work factor as real hashes so both failure paths
    take equally long.
    """
    return bcrypt.hashpw(b"authgate-dummy-password", bcrypt.gensalt(rounds=rounds))


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password with a fresh random salt."""
    if not password:
        raise ValidationError("Password must not be empty")
    try:
        encoded = password.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationError("Password must be valid UTF-8 text") from exc
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    salt = bcrypt.gensalt(rounds=rounds or DEFAULT_ROUNDS)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a plain-text password against a stored bcrypt hash.

    Returns False for a mismatch. Raises MalformedHashError if
    *password_hash* is not a bcrypt hash.
    """
    try:
        encoded = password.encode("utf-8") if password else b""
    except UnicodeEncodeError:
        encoded = b""
    if not encoded or len(encoded) > MAX_PASSWORD_BYTES:
        _check_hash_format(password_hash)
        return False

    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError as exc:
        raise MalformedHashError("Stored password hash is malformed") from exc


def burn_verification(password: str, rounds: int | None = None) -> None:
    """Spend one verification's worth of CPU without a real hash."""
    encoded = (password or "").encode("utf-8", "replace")[:MAX_PASSWORD_BYTES] or b"x"
    bcrypt.checkpw(encoded, dummy_hash(rounds or DEFAULT_ROUNDS))


def _check_hash_format(password_hash: str) -> None:
    # $2b$10$ + 22 salt chars + 31 digest chars
    parts = (password_hash or "").split("$")
    if len(password_hash or "") != 60 or len(parts) != 4 or parts[1] not in ("2a", "2b", "2y"):
        raise MalformedHashError("Stored password hash is malformed")
