"""Post API routes.

Learn: Reads are public; create/update/delete need a bearer token.
Create and update accept JSON, or multipart with "photos" files and
"location[city]" / "location[country]" fields. On update,
photosToDelete is a JSON array of stored photo references (sent as a
string in multipart bodies).

Mutations check existence first (404) and ownership second (403).
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync.api.payload import parse_json_list, read_payload, validate
from trailsync.auth.dependencies import CurrentIdentity, get_current_user
from trailsync.auth.ownership import require_owner
from trailsync.db.engine import get_db
from trailsync.schemas.post import PostCreate, PostRead, PostUpdate
from trailsync.services.post_service import PostService
from trailsync.storage.photos import POSTS, PhotoStorage, get_photo_storage

router = APIRouter(prefix="/post")


def _svc(
    db: AsyncSession = Depends(get_db),
    photos: PhotoStorage = Depends(get_photo_storage),
) -> PostService:
    return PostService(db, photos)


@router.get("", response_model=list[PostRead])
async def list_posts(
    user: Optional[uuid.UUID] = Query(None, description="Filter by owner id"),
    title: Optional[str] = Query(None),
    country: Optional[str] = Query(None, alias="location.country"),
    city: Optional[str] = Query(None, alias="location.city"),
    svc: PostService = Depends(_svc),
):
    posts = await svc.list_posts(user_id=user, title=title, country=country, city=city)
    return [PostRead.from_model(p) for p in posts]


@router.get("/{post_id}", response_model=PostRead)
async def get_post(post_id: uuid.UUID, svc: PostService = Depends(_svc)):
    return PostRead.from_model(await svc.get_post(post_id))


@router.post("", response_model=PostRead, status_code=201)
async def create_post(
    request: Request,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PostService = Depends(_svc),
):
    """Create a post owned by the caller, with optional photos."""
    payload = await read_payload(request)
    body = validate(PostCreate, payload.fields)

    post_id = uuid.uuid4()
    refs = await svc.photos.save_many(
        payload.files_for("photos"), POSTS, prefix=str(post_id)
    )
    post = await svc.create_post(identity, body, photo_refs=refs, post_id=post_id)
    return PostRead.from_model(post)


@router.put("/{post_id}", response_model=PostRead)
async def update_post(
    post_id: uuid.UUID,
    request: Request,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PostService = Depends(_svc),
):
    """Partially update a post; add photos and remove listed ones."""
    payload = await read_payload(request)
    fields = dict(payload.fields)
    fields["photosToDelete"] = parse_json_list(
        fields.pop("photosToDelete", None), "photosToDelete"
    )
    body = validate(PostUpdate, fields)

    # 404 and 403 before any file is written
    post = await svc.get_post(post_id)
    require_owner(identity, post.user_id)
    refs = await svc.photos.save_many(
        payload.files_for("photos"), POSTS, prefix=f"{post_id}-{uuid.uuid4().hex[:8]}"
    )
    post = await svc.update_post(identity, post_id, body, new_photo_refs=refs)
    return PostRead.from_model(post)


@router.delete("/{post_id}", response_model=PostRead)
async def delete_post(
    post_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PostService = Depends(_svc),
):
    """Delete a post, its comments, and its photos. Returns the deleted post."""
    return PostRead.from_model(await svc.delete_post(identity, post_id))
