"""Pydantic schemas for comments."""

import uuid
from datetime import datetime

from pydantic import Field

from trailsync.db.models import Comment
from trailsync.schemas.base import CamelModel


class CommentCreate(CamelModel):
    post: uuid.UUID
    text: str = Field(..., min_length=1)


class CommentUpdate(CamelModel):
    text: str = Field(..., min_length=1)


class CommentRead(CamelModel):
    id: uuid.UUID
    post: uuid.UUID
    user: uuid.UUID
    text: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, comment: Comment) -> "CommentRead":
        return cls(
            id=comment.id,
            post=comment.post_id,
            user=comment.user_id,
            text=comment.text,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )
