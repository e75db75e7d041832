"""
Credential store: the persistence contract the auth core consumes, and its
SQLAlchemy implementation.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from authgate.db.models import User
from authgate.errors import DuplicateAccountError, StoreUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRecord:
    id: uuid.UUID
    name: str
    email: str
    password_hash: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewUser:
    name: str
    email: str
    password_hash: str


class CredentialStore(Protocol):
    """
    Persists and retrieves user records keyed by email.

    Every method raises ``StoreUnavailableError`` on infrastructure failure.
    ``create`` raises ``DuplicateAccountError`` if the email is already taken,
    even when a concurrent registration slipped past the caller's own check.
    """

    def find_by_email(self, email: str) -> UserRecord | None: ...

    def find_by_id(self, user_id: uuid.UUID) -> UserRecord | None: ...

    def create(self, new_user: NewUser) -> UserRecord: ...


def _to_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        name=user.name,
        email=user.email,
        password_hash=user.password_hash,
        created_at=user.created_at,
    )


class SqlCredentialStore:
    """``CredentialStore`` backed by the ``users`` table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_email(self, email: str) -> UserRecord | None:
        try:
            user = self.db.scalars(select(User).where(User.email == email)).first()
        except SQLAlchemyError as exc:
            logger.error("User lookup by email failed: %s", type(exc).__name__)
            raise StoreUnavailableError() from exc
        return _to_record(user) if user is not None else None

    def find_by_id(self, user_id: uuid.UUID) -> UserRecord | None:
        try:
            user = self.db.get(User, user_id)
        except SQLAlchemyError as exc:
            logger.error("User lookup by id failed: %s", type(exc).__name__)
            raise StoreUnavailableError() from exc
        return _to_record(user) if user is not None else None

    def create(self, new_user: NewUser) -> UserRecord:
        user = User(
            name=new_user.name,
            email=new_user.email,
            password_hash=new_user.password_hash,
        )
        try:
            self.db.add(user)
            self.db.commit()
            # Loads the server-generated created_at.
            self.db.refresh(user)
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateAccountError() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("User insert failed: %s", type(exc).__name__)
            raise StoreUnavailableError() from exc
        return _to_record(user)
