"""Authentication schemas."""

from typing import Any

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Email/password credentials. Presence is checked by the route."""

    email: str | None = None
    password: str | None = None


class AuthUser(BaseModel):
    """User as reported by the identity service."""

    id: str
    email: str | None = None
    role: str | None = None
    app_metadata: dict[str, Any] = {}
    user_metadata: dict[str, Any] = {}


class LoginResponse(BaseModel):
    """Access token plus the signed-in user."""

    token: str
    user: AuthUser
