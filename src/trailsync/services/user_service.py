"""User service — public profiles, profile edits, and account removal.

Learn: A user may only edit or delete their own account. Deleting an
account removes everything it owns: comments it wrote, its posts (and
the comments on them), and every photo file involved.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync.auth.dependencies import CurrentIdentity
from trailsync.auth.ownership import require_owner
from trailsync.auth.password import BCRYPT_ROUNDS, hash_password
from trailsync.auth.store import normalize_email
from trailsync.db.models import Comment, Post, User
from trailsync.errors import NotFound, ValidationError
from trailsync.schemas.user import UserUpdate
from trailsync.services.crud import CrudRepository
from trailsync.storage.photos import PhotoStorage

logger = structlog.get_logger()


class UserService:
    """Business logic for user accounts."""

    def __init__(
        self,
        db: AsyncSession,
        photos: PhotoStorage,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ):
        self.db = db
        self.photos = photos
        self.bcrypt_rounds = bcrypt_rounds
        self.users = CrudRepository(db, User)
        self.posts = CrudRepository(db, Post)
        self.comments = CrudRepository(db, Comment)

    async def list_users(
        self, username: Optional[str] = None, email: Optional[str] = None
    ) -> list[User]:
        return await self.users.list(
            username=username,
            email=normalize_email(email) if email else None,
        )

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def update_user(
        self,
        identity: CurrentIdentity,
        user_id: uuid.UUID,
        body: UserUpdate,
        profile_picture: Optional[str] = None,
    ) -> User:
        """Edit the caller's own profile.

        A newly uploaded picture replaces the old one; the old file is
        removed after the row is saved, the new one if saving fails.
        """
        try:
            user = await self.get_user(user_id)
            require_owner(identity, user.id)

            fields = body.model_dump(exclude_unset=True, exclude_none=True)
            if "email" in fields:
                fields["email"] = normalize_email(fields["email"])
                if "@" not in fields["email"]:
                    raise ValidationError("Invalid email")
                taken = await self.users.list(email=fields["email"])
                if any(u.id != user.id for u in taken):
                    raise ValidationError("Email already in use")
            if "password" in fields:
                fields["password_hash"] = hash_password(
                    fields.pop("password"), rounds=self.bcrypt_rounds
                )

            old_picture = user.profile_picture
            if profile_picture:
                fields["profile_picture"] = profile_picture

            user = await self.users.update(user, fields)
        except Exception:
            self.photos.delete(profile_picture)
            raise

        if profile_picture and old_picture and old_picture != profile_picture:
            self.photos.delete(old_picture)
        logger.info("users.updated", user_id=str(user.id))
        return user

    async def delete_user(self, identity: CurrentIdentity, user_id: uuid.UUID) -> User:
        """Delete the caller's account and everything it owns."""
        user = await self.get_user(user_id)
        require_owner(identity, user.id)

        posts = await self.posts.list(user_id=user.id)
        post_ids = [p.id for p in posts]
        files = [ref for p in posts for ref in p.photos]
        if user.profile_picture:
            files.append(user.profile_picture)

        await self.comments.delete_where(user_id=user.id)
        if post_ids:
            await self.comments.delete_where(Comment.post_id.in_(post_ids))
            await self.posts.delete_where(Post.id.in_(post_ids))
        await self.users.delete(user)
        self.photos.delete_many(files)

        logger.info("users.deleted", user_id=str(user.id), posts=len(post_ids))
        return user
