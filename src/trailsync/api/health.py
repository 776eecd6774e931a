"""Health check endpoint.

Learn: Reports whether the two things a request can depend on are
usable: the database (one SELECT 1 through the normal get_db session)
and the photo upload directory (exists and is writable). Any failing
check turns the overall status to "degraded" but still answers 200, so
load balancers can tell a sick instance from a dead one.
"""

import os

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync import __version__
from trailsync.db.engine import get_db
from trailsync.storage.photos import FOLDERS, PhotoStorage, get_photo_storage

router = APIRouter()


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        return f"error: {e}"
    return "ok"


def _check_storage(photos: PhotoStorage) -> str:
    for folder in FOLDERS:
        path = photos.root / folder
        if not path.is_dir():
            return f"error: missing {folder}/"
        if not os.access(path, os.W_OK):
            return f"error: {folder}/ not writable"
    return "ok"


@router.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    photos: PhotoStorage = Depends(get_photo_storage),
):
    """Server, database, and upload storage status."""
    checks = {
        "database": await _check_database(db),
        "storage": _check_storage(photos),
    }
    status = "healthy" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, "server": "ok", "version": __version__, **checks}
