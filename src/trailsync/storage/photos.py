"""Photo storage — profile pictures and post photos on local disk.

Learn: Uploaded images are written under <upload_dir>/<folder>/ as
"<prefix>-<original name>" and referenced everywhere else by the
relative path "<folder>/<filename>". The same path is served read-only
under /uploads by the app.

Callers that fail after saving a file must delete it again — there is
no background sweeper for orphaned uploads.
"""

import re
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

import structlog
from fastapi import Request
from starlette.datastructures import UploadFile

from trailsync.errors import ValidationError

logger = structlog.get_logger()

PROFILES = "profiles"
POSTS = "posts"
FOLDERS = (PROFILES, POSTS)

ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|gif|webp")


class PhotoStorage:
    """Saves, resolves, and deletes uploaded images."""

    def __init__(self, root: str | Path, max_file_size: int):
        self.root = Path(root)
        self.max_file_size = max_file_size

    def ensure_dirs(self) -> None:
        for folder in FOLDERS:
            (self.root / folder).mkdir(parents=True, exist_ok=True)

    def path_for(self, ref: str) -> Path:
        """Filesystem path of a stored reference, confined to the root."""
        rel = PurePosixPath(ref)
        if rel.is_absolute() or ".." in rel.parts or len(rel.parts) != 2:
            raise ValidationError(f"Invalid photo reference: {ref}")
        return self.root.joinpath(*rel.parts)

    @staticmethod
    def is_allowed(filename: str, content_type: Optional[str]) -> bool:
        """Both the extension and the MIME type must name an image type."""
        ext = Path(filename).suffix.lower().lstrip(".")
        return bool(
            ext
            and ALLOWED_TYPES.fullmatch(ext)
            and content_type
            and ALLOWED_TYPES.search(content_type)
        )

    async def save(self, upload: UploadFile, folder: str, prefix: str) -> str:
        """Validate and write an upload. Returns its stored reference."""
        if folder not in FOLDERS:
            raise ValueError(f"Unknown upload folder: {folder}")

        filename = Path(upload.filename or "").name
        if not filename or not self.is_allowed(filename, upload.content_type):
            raise ValidationError("File type not allowed")

        data = await upload.read()
        if len(data) > self.max_file_size:
            raise ValidationError("File too large")

        stored_name = f"{prefix}-{filename}"
        target = self.root / folder / stored_name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("photos.saved", ref=f"{folder}/{stored_name}", size=len(data))
        return f"{folder}/{stored_name}"

    async def save_many(
        self, uploads: Iterable[UploadFile], folder: str, prefix: str
    ) -> list[str]:
        """Save several uploads; if one is rejected, remove the ones already written."""
        refs: list[str] = []
        try:
            for upload in uploads:
                refs.append(await self.save(upload, folder, prefix))
        except Exception:
            self.delete_many(refs)
            raise
        return refs

    def delete(self, ref: Optional[str]) -> None:
        """Remove a stored file. Missing files and empty refs are ignored."""
        if not ref:
            return
        try:
            path = self.path_for(ref)
        except ValidationError:
            logger.warning("photos.invalid_ref", ref=ref)
            return
        if path.exists():
            path.unlink()
            logger.info("photos.deleted", ref=ref)

    def delete_many(self, refs: Iterable[str]) -> None:
        for ref in refs:
            self.delete(ref)


def get_photo_storage(request: Request) -> PhotoStorage:
    """FastAPI dependency — the storage built by create_app()."""
    return request.app.state.photos
