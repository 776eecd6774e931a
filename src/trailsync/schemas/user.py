"""Pydantic schemas for user profiles."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from trailsync.schemas.base import CamelModel


class UserRead(CamelModel):
    """Public profile — never includes the password hash or tokens."""
    id: uuid.UUID
    email: str
    username: str
    profile_picture: Optional[str] = None
    created_at: datetime


class UserUpdate(CamelModel):
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=1)
