"""User API routes.

Learn: Profiles are public (without password hash or tokens). Editing
and deleting are limited to the account itself. PUT accepts JSON, or
multipart with a "profilePicture" file that replaces the old picture.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync.api.payload import read_payload, validate
from trailsync.auth.dependencies import CurrentIdentity, get_current_user
from trailsync.auth.ownership import require_owner
from trailsync.db.engine import get_db
from trailsync.schemas.user import UserRead, UserUpdate
from trailsync.services.user_service import UserService
from trailsync.storage.photos import PROFILES, PhotoStorage, get_photo_storage

router = APIRouter(prefix="/user")


def _svc(
    request: Request,
    db: AsyncSession = Depends(get_db),
    photos: PhotoStorage = Depends(get_photo_storage),
) -> UserService:
    return UserService(db, photos, bcrypt_rounds=request.app.state.settings.bcrypt_rounds)


@router.get("", response_model=list[UserRead])
async def list_users(
    username: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    svc: UserService = Depends(_svc),
):
    return await svc.list_users(username=username, email=email)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: uuid.UUID, svc: UserService = Depends(_svc)):
    return await svc.get_user(user_id)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: uuid.UUID,
    request: Request,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    payload = await read_payload(request)
    body = validate(UserUpdate, payload.fields)

    # 404 and 403 before any file is written
    user = await svc.get_user(user_id)
    require_owner(identity, user.id)
    picture = None
    upload = payload.file_for("profilePicture")
    if upload:
        picture = await svc.photos.save(
            upload, PROFILES, prefix=f"{user.id}-{uuid.uuid4().hex[:8]}"
        )
    return await svc.update_user(identity, user_id, body, profile_picture=picture)


@router.delete("/{user_id}", response_model=UserRead)
async def delete_user(
    user_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Delete the caller's account. Returns the deleted profile."""
    return await svc.delete_user(identity, user_id)
