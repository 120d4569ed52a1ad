"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    name: str | None = Field(default=None, max_length=255)
    invite_code: str | None = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UpdateMeRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)


class UserResponse(BaseModel):
    id: int
    email: str
    name: str | None = None
    created_at: datetime | None = None


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


@dataclass(frozen=True)
class SessionIdentity:
    """A dashboard user authenticated with a session token."""

    user_id: int
    email: str

    @property
    def client_id(self) -> int | None:
        return None


@dataclass(frozen=True)
class ApiKeyIdentity:
    """A remote site (or script) authenticated with an API key."""

    user_id: int
    client_id: int | None
    key_id: int


Identity = SessionIdentity | ApiKeyIdentity
