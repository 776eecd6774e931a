"""Comment API routes.

Learn: Reads are public and filterable by post or author. Creating a
comment needs a bearer token and an existing post; editing or deleting
one is limited to its author.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync.auth.dependencies import CurrentIdentity, get_current_user
from trailsync.db.engine import get_db
from trailsync.schemas.comment import CommentCreate, CommentRead, CommentUpdate
from trailsync.services.comment_service import CommentService

router = APIRouter(prefix="/comment")


def _svc(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


@router.get("", response_model=list[CommentRead])
async def list_comments(
    post: Optional[uuid.UUID] = Query(None, description="Filter by post id"),
    user: Optional[uuid.UUID] = Query(None, description="Filter by author id"),
    svc: CommentService = Depends(_svc),
):
    comments = await svc.list_comments(post_id=post, user_id=user)
    return [CommentRead.from_model(c) for c in comments]


@router.get("/{comment_id}", response_model=CommentRead)
async def get_comment(comment_id: uuid.UUID, svc: CommentService = Depends(_svc)):
    return CommentRead.from_model(await svc.get_comment(comment_id))


@router.post("", response_model=CommentRead, status_code=201)
async def create_comment(
    body: CommentCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: CommentService = Depends(_svc),
):
    return CommentRead.from_model(await svc.create_comment(identity, body))


@router.put("/{comment_id}", response_model=CommentRead)
async def update_comment(
    comment_id: uuid.UUID,
    body: CommentUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: CommentService = Depends(_svc),
):
    return CommentRead.from_model(await svc.update_comment(identity, comment_id, body))


@router.delete("/{comment_id}", response_model=CommentRead)
async def delete_comment(
    comment_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: CommentService = Depends(_svc),
):
    """Delete a comment. Returns the deleted comment."""
    return CommentRead.from_model(await svc.delete_comment(identity, comment_id))
