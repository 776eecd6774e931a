"""Pydantic schemas for registration, login, and token exchange.

Learn: Credential fields are Optional on purpose — a missing email or
refresh token is reported by the session service as a 400 with a clear
message, rather than as a generic schema error.
"""

from typing import Optional

from trailsync.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class TokenResponse(CamelModel):
    token: str
    refresh_token: str


class MessageResponse(CamelModel):
    message: str
