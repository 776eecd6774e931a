"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Unlike a blanket router-level auth dependency, auth here is
declared per route — reads are public, while every create/update/delete
handler depends on get_current_user and then checks ownership.
"""

from fastapi import APIRouter

from trailsync.api.auth import router as auth_router
from trailsync.api.comments import router as comments_router
from trailsync.api.health import router as health_router
from trailsync.api.posts import router as posts_router
from trailsync.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(posts_router, tags=["posts"])
api_router.include_router(comments_router, tags=["comments"])
