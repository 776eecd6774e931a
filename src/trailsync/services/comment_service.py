"""Comment service — comments on trip posts."""

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync.auth.dependencies import CurrentIdentity
from trailsync.auth.ownership import require_owner
from trailsync.db.models import Comment, Post, User
from trailsync.errors import NotFound, Unauthorized
from trailsync.schemas.comment import CommentCreate, CommentUpdate
from trailsync.services.crud import CrudRepository

logger = structlog.get_logger()


class CommentService:
    """Business logic for comments. Authors own their comments."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.comments = CrudRepository(db, Comment)
        self.posts = CrudRepository(db, Post)
        self.users = CrudRepository(db, User)

    async def list_comments(
        self,
        post_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> list[Comment]:
        return await self.comments.list(post_id=post_id, user_id=user_id)

    async def get_comment(self, comment_id: uuid.UUID) -> Comment:
        comment = await self.comments.get_by_id(comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        return comment

    async def create_comment(
        self, identity: CurrentIdentity, body: CommentCreate
    ) -> Comment:
        if await self.users.get_by_id(uuid.UUID(identity.user_id)) is None:
            raise Unauthorized()
        if await self.posts.get_by_id(body.post) is None:
            raise NotFound("Post not found")

        comment = await self.comments.create(
            post_id=body.post,
            user_id=uuid.UUID(identity.user_id),
            text=body.text,
        )
        logger.info("comments.created", comment_id=str(comment.id))
        return comment

    async def update_comment(
        self, identity: CurrentIdentity, comment_id: uuid.UUID, body: CommentUpdate
    ) -> Comment:
        comment = await self.get_comment(comment_id)
        require_owner(identity, comment.user_id)
        return await self.comments.update(comment, {"text": body.text})

    async def delete_comment(
        self, identity: CurrentIdentity, comment_id: uuid.UUID
    ) -> Comment:
        comment = await self.get_comment(comment_id)
        require_owner(identity, comment.user_id)
        await self.comments.delete(comment)
        logger.info("comments.deleted", comment_id=str(comment.id))
        return comment
