"""Post service — trip posts and their photos.

Learn: PostService wraps a CrudRepository[Post] and adds the rules the
generic repository does not know about: the owner comes from the caller
identity, only the owner may change or delete a post, and photo files
are cleaned up whenever the rows that reference them go away.
"""

import uuid
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync.auth.dependencies import CurrentIdentity
from trailsync.auth.ownership import require_owner
from trailsync.db.models import Comment, Post, User
from trailsync.errors import NotFound, Unauthorized, ValidationError
from trailsync.schemas.post import PostCreate, PostUpdate
from trailsync.services.crud import CrudRepository
from trailsync.storage.photos import PhotoStorage

logger = structlog.get_logger()


def _columns(data: dict[str, Any]) -> dict[str, Any]:
    """Flatten the nested location object into its two columns."""
    fields = dict(data)
    location = fields.pop("location", None)
    if location is not None:
        fields["location_city"] = location.get("city")
        fields["location_country"] = location["country"]
    return fields


class PostService:
    """Business logic for trip posts."""

    def __init__(self, db: AsyncSession, photos: PhotoStorage):
        self.db = db
        self.photos = photos
        self.posts = CrudRepository(db, Post)
        self.comments = CrudRepository(db, Comment)
        self.users = CrudRepository(db, User)

    async def list_posts(
        self,
        user_id: Optional[uuid.UUID] = None,
        title: Optional[str] = None,
        country: Optional[str] = None,
        city: Optional[str] = None,
    ) -> list[Post]:
        return await self.posts.list(
            user_id=user_id,
            title=title,
            location_country=country,
            location_city=city,
        )

    async def get_post(self, post_id: uuid.UUID) -> Post:
        post = await self.posts.get_by_id(post_id)
        if post is None:
            raise NotFound("Post not found")
        return post

    async def create_post(
        self,
        identity: CurrentIdentity,
        body: PostCreate,
        photo_refs: Optional[list[str]] = None,
        post_id: Optional[uuid.UUID] = None,
    ) -> Post:
        """Create a post owned by the caller.

        photo_refs are files the route already saved; they are deleted
        again if the insert fails.
        """
        photo_refs = photo_refs or []
        try:
            # A token can outlive its account
            if await self.users.get_by_id(uuid.UUID(identity.user_id)) is None:
                raise Unauthorized()
            post = await self.posts.create(
                id=post_id or uuid.uuid4(),
                user_id=uuid.UUID(identity.user_id),
                photos=photo_refs,
                **_columns(body.model_dump()),
            )
        except Exception:
            self.photos.delete_many(photo_refs)
            raise

        logger.info("posts.created", post_id=str(post.id), photos=len(photo_refs))
        return post

    async def update_post(
        self,
        identity: CurrentIdentity,
        post_id: uuid.UUID,
        body: PostUpdate,
        new_photo_refs: Optional[list[str]] = None,
    ) -> Post:
        """Apply a partial update, add new photos, and drop removed ones."""
        new_photo_refs = new_photo_refs or []
        try:
            post = await self.get_post(post_id)
            require_owner(identity, post.user_id)

            to_delete = set(body.photos_to_delete)
            unknown = to_delete - set(post.photos)
            if unknown:
                raise ValidationError(
                    f"Photos do not belong to this post: {', '.join(sorted(unknown))}"
                )

            fields = _columns(
                body.model_dump(exclude_unset=True, exclude={"photos_to_delete"})
            )
            fields = {k: v for k, v in fields.items() if v is not None or k == "location_city"}
            fields["photos"] = [
                p for p in post.photos if p not in to_delete
            ] + new_photo_refs

            post = await self.posts.update(post, fields)
        except Exception:
            self.photos.delete_many(new_photo_refs)
            raise

        # Only remove files once the row no longer points at them
        self.photos.delete_many(to_delete)
        logger.info("posts.updated", post_id=str(post.id))
        return post

    async def delete_post(self, identity: CurrentIdentity, post_id: uuid.UUID) -> Post:
        """Delete a post with its comments and photo files."""
        post = await self.get_post(post_id)
        require_owner(identity, post.user_id)

        photo_refs = list(post.photos)
        await self.comments.delete_where(post_id=post.id)
        await self.posts.delete(post)
        self.photos.delete_many(photo_refs)

        logger.info("posts.deleted", post_id=str(post.id))
        return post
