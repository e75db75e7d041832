"""
AuthGate structured event emission.

``record_event`` is the one place auth events are emitted. Events go to the
``authgate.audit`` logger with the event fields attached as
``extra={"event": ...}`` so a JSON formatter or log shipper can pick them up.
Passwords and tokens are never accepted as fields.
"""

import logging
import uuid
from typing import Any, Optional

audit_logger = logging.getLogger("authgate.audit")

_FORBIDDEN_FIELDS = frozenset({"password", "password_hash", "token", "secret"})


# ── Core helper ──────────────────────────────────────────────────────────────

def record_event(
    settings,
    action_type: str,
    user_id: Optional[uuid.UUID] = None,
    email: Optional[str] = None,
    level: int = logging.INFO,
    **details: Any,
) -> dict:
    """
    Emit one audit event and return the event dict.

    *email* is dropped unless ``settings.AUDIT_LOG_EMAILS`` is enabled.
    """
    leaked = _FORBIDDEN_FIELDS.intersection(details)
    if leaked:
        raise ValueError(f"Refusing to record secret fields: {sorted(leaked)}")

    event: dict = {"action": action_type}
    if user_id is not None:
        event["user_id"] = str(user_id)
    if email and settings.AUDIT_LOG_EMAILS:
        event["email"] = email
    event.update(details)

    fields = " ".join(f"{k}={v}" for k, v in event.items() if k != "action")
    audit_logger.log(level, "%s %s", action_type, fields, extra={"event": event})
    return event


# ── Convenience wrappers ─────────────────────────────────────────────────────

def log_register(settings, user_id: uuid.UUID, email: str) -> dict:
    return record_event(settings, "user.register", user_id=user_id, email=email)


def log_register_rejected(settings, reason: str, email: Optional[str] = None) -> dict:
    return record_event(settings, "user.register_rejected", email=email,
                        level=logging.WARNING, reason=reason)


def log_login(settings, user_id: uuid.UUID, email: str) -> dict:
    return record_event(settings, "user.login", user_id=user_id, email=email)


def log_login_failed(settings, reason: str, email: Optional[str] = None) -> dict:
    return record_event(settings, "user.login_failed", email=email,
                        level=logging.WARNING, reason=reason)


def log_profile(settings, user_id: uuid.UUID) -> dict:
    return record_event(settings, "user.profile", user_id=user_id)
