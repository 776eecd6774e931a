"""Auth API — registration, login, token refresh, logout.

Learn: Routes for the session lifecycle:
- POST /auth/register → create an account, returns the first token pair
- POST /auth/login → email/password → new token pair
- POST /auth/refresh-token → refresh token → new pair (old one is spent)
- POST /auth/logout → forget one refresh token
- GET /auth/me → current user info

Registration accepts JSON or multipart (with an optional profilePicture
file). The picture is saved before the account exists; the session
service deletes it again if registration fails.
"""

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trailsync.api.payload import read_payload, validate
from trailsync.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_token_issuer,
)
from trailsync.auth.jwt import TokenIssuer
from trailsync.auth.store import UserStore
from trailsync.db.engine import get_db
from trailsync.errors import NotFound, RegistrationFailed, TrailSyncError
from trailsync.schemas.auth import (
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from trailsync.schemas.user import UserRead
from trailsync.services.session_service import SessionManager
from trailsync.storage.photos import PROFILES, PhotoStorage, get_photo_storage

router = APIRouter(prefix="/auth")


def _sessions(
    request: Request,
    db: AsyncSession = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
    photos: PhotoStorage = Depends(get_photo_storage),
) -> SessionManager:
    return SessionManager(
        UserStore(db),
        issuer,
        photos,
        bcrypt_rounds=request.app.state.settings.bcrypt_rounds,
    )


def _tokens(pair) -> TokenResponse:
    return TokenResponse(token=pair.token, refresh_token=pair.refresh_token)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    request: Request,
    svc: SessionManager = Depends(_sessions),
    photos: PhotoStorage = Depends(get_photo_storage),
):
    """Create a new user account and log it in."""
    try:
        payload = await read_payload(request)
        body = validate(RegisterRequest, payload.fields)
        upload = payload.file_for("profilePicture")
        picture = (
            await photos.save(upload, PROFILES, prefix=uuid.uuid4().hex)
            if upload
            else None
        )
    except TrailSyncError as e:
        raise RegistrationFailed(e.message) from e

    tokens = await svc.register(
        email=body.email,
        password=body.password,
        username=body.username,
        profile_picture=picture,
    )
    return _tokens(tokens)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, svc: SessionManager = Depends(_sessions)):
    """Login with email and password → JWT tokens."""
    return _tokens(await svc.login(body.email, body.password))


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(body: RefreshRequest, svc: SessionManager = Depends(_sessions)):
    """Exchange a refresh token for a new pair. The old token is spent."""
    return _tokens(await svc.refresh(body.refresh_token))


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout", response_model=MessageResponse)
async def logout(body: RefreshRequest, svc: SessionManager = Depends(_sessions)):
    """End the session that owns this refresh token."""
    await svc.logout(body.refresh_token)
    return MessageResponse(message="Logged out successfully")


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the current authenticated user's profile."""
    user = await UserStore(db).get(identity.user_id)
    if not user:
        raise NotFound("User not found")
    return user
