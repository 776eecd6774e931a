"""PhotoStorage tests — validation, naming, confinement, cleanup."""

import io

import pytest
from starlette.datastructures import Headers, UploadFile

from trailsync.errors import ValidationError
from trailsync.storage.photos import POSTS, PROFILES, PhotoStorage


def _upload(name: str, data: bytes = b"img", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=name,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture()
def storage(tmp_path):
    s = PhotoStorage(tmp_path, max_file_size=16)
    s.ensure_dirs()
    return s


def test_ensure_dirs_creates_folders(storage):
    assert (storage.root / PROFILES).is_dir()
    assert (storage.root / POSTS).is_dir()


@pytest.mark.parametrize(
    "filename,content_type,allowed",
    [
        ("a.png", "image/png", True),
        ("a.JPG", "image/jpeg", True),
        ("a.webp", "image/webp", True),
        ("a.gif", "image/gif", True),
        ("a.png", "text/plain", False),
        ("a.txt", "image/png", False),
        ("png", "image/png", False),
        ("a.png", None, False),
    ],
)
def test_is_allowed(filename, content_type, allowed):
    assert PhotoStorage.is_allowed(filename, content_type) is allowed


@pytest.mark.asyncio
async def test_save_names_file_by_prefix(storage):
    ref = await storage.save(_upload("beach.png"), POSTS, prefix="abc")
    assert ref == "posts/abc-beach.png"
    assert storage.path_for(ref).read_bytes() == b"img"


@pytest.mark.asyncio
async def test_save_strips_client_directories(storage):
    ref = await storage.save(_upload("../../etc/beach.png"), POSTS, prefix="p")
    assert ref == "posts/p-beach.png"


@pytest.mark.asyncio
async def test_save_rejects_type_and_size(storage):
    with pytest.raises(ValidationError, match="File type not allowed"):
        await storage.save(_upload("doc.pdf", content_type="application/pdf"), POSTS, "p")
    with pytest.raises(ValidationError, match="File too large"):
        await storage.save(_upload("big.png", data=b"x" * 17), POSTS, "p")
    assert list((storage.root / POSTS).iterdir()) == []


@pytest.mark.asyncio
async def test_save_many_cleans_up_on_rejection(storage):
    uploads = [_upload("one.png"), _upload("two.png"), _upload("bad.txt", content_type="text/plain")]
    with pytest.raises(ValidationError):
        await storage.save_many(uploads, POSTS, prefix="trip")
    assert list((storage.root / POSTS).iterdir()) == []


@pytest.mark.parametrize("ref", ["/etc/passwd", "posts/../../secret.png", "posts", "a/b/c.png"])
def test_path_for_rejects_escapes(storage, ref):
    with pytest.raises(ValidationError):
        storage.path_for(ref)


@pytest.mark.asyncio
async def test_delete_is_idempotent(storage):
    ref = await storage.save(_upload("x.png"), PROFILES, prefix="u")
    storage.delete(ref)
    assert not storage.path_for(ref).exists()
    storage.delete(ref)
    storage.delete(None)
    storage.delete("../outside.png")
