"""
Pydantic models for request / response validation.

Request fields are optional at the schema level so that a missing field
reaches the presence check and gets the endpoint's own 400 message.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


# ---- Auth ----

class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    message: str
    token: str


class ProfileResponse(BaseModel):
    id: str
    name: str
    email: str
    created_at: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


# ---- Health ----

class HealthResponse(BaseModel):
    status: str
    database: bool
