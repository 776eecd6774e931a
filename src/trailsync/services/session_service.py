"""Session service — registration, login, refresh rotation, and logout.

Learn: A user's login sessions are the refresh tokens stored on their
row. There is no explicit status field; the state machine lives in the
contents of User.refresh_tokens:

- register / login append a freshly minted refresh token, dropping
  stored ones that have expired
- refresh swaps the presented token for a new one (single use)
- logout removes the presented token

Reuse detection: a refresh token that verifies but is no longer stored
was either already exchanged or never handed out by us. Either way it is
treated as stolen, and every session of that user is revoked by clearing
the list. Logout with an unknown token is just rejected — it revokes
nothing.

Two simultaneous refreshes with the same token are not serialized here;
the last commit wins.
"""

from typing import Optional

import structlog

from trailsync.auth.jwt import InvalidToken, TokenIssuer, TokenPair
from trailsync.auth.password import BCRYPT_ROUNDS, hash_password, verify_password
from trailsync.auth.store import UserStore
from trailsync.db.models import User
from trailsync.errors import (
    InternalError,
    InvalidCredentials,
    InvalidRefreshToken,
    LoginFailed,
    MissingCredentials,
    MissingRefreshToken,
    RegistrationFailed,
)
from trailsync.storage.photos import PhotoStorage

logger = structlog.get_logger()


class SessionManager:
    """Business logic for the token lifecycle of a user."""

    def __init__(
        self,
        store: UserStore,
        issuer: TokenIssuer,
        photos: Optional[PhotoStorage] = None,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ):
        self.store = store
        self.issuer = issuer
        self.photos = photos
        self.bcrypt_rounds = bcrypt_rounds

    def _live(self, tokens: list[str]) -> list[str]:
        """Stored refresh tokens that still verify; expired ones are dropped."""
        kept = []
        for token in tokens:
            try:
                self.issuer.verify(token)
            except InvalidToken:
                continue
            kept.append(token)
        return kept

    # ─── Register ───────────────────────────────────────

    async def register(
        self,
        email: Optional[str],
        password: Optional[str],
        username: Optional[str],
        profile_picture: Optional[str] = None,
    ) -> TokenPair:
        """Create a user and open their first session.

        Learn: profile_picture is the reference of a file the route has
        already saved. If anything below fails, that file is deleted so
        no orphaned upload is left behind, and the caller only ever sees
        RegistrationFailed.
        """
        try:
            if not email or "@" not in email or not password or not username:
                raise RegistrationFailed("Email, password and username are required")

            if await self.store.find_by_email(email):
                raise RegistrationFailed("Email already registered")

            user = await self.store.create(
                email=email,
                password_hash=hash_password(password, rounds=self.bcrypt_rounds),
                username=username,
                profile_picture=profile_picture,
            )
            tokens = self.issuer.issue_token_pair(user.id)
            user.refresh_tokens = [tokens.refresh_token]
            await self.store.save(user)
        except Exception as e:
            await self.store.rollback()
            if self.photos and profile_picture:
                self.photos.delete(profile_picture)
            logger.info("auth.registration_failed", error=str(e))
            if isinstance(e, RegistrationFailed):
                raise
            raise RegistrationFailed() from e

        logger.info("auth.registered", user_id=str(user.id))
        return tokens

    # ─── Login ──────────────────────────────────────────

    async def login(self, email: Optional[str], password: Optional[str]) -> TokenPair:
        """Check credentials and open a new session.

        Unknown email and wrong password raise the same InvalidCredentials.
        """
        if not email or not password:
            raise MissingCredentials()

        try:
            user = await self.store.find_by_email(email)
        except InternalError as e:
            raise LoginFailed() from e

        if user is None or not verify_password(password, user.password_hash):
            logger.info("auth.login_rejected")
            raise InvalidCredentials()

        tokens = self.issuer.issue_token_pair(user.id)
        user.refresh_tokens = [*self._live(user.refresh_tokens), tokens.refresh_token]
        try:
            await self.store.save(user)
        except InternalError as e:
            raise LoginFailed() from e

        logger.info("auth.login_succeeded", user_id=str(user.id))
        return tokens

    # ─── Refresh ────────────────────────────────────────

    async def _owner_of(self, refresh_token: Optional[str]) -> User:
        """Verify a refresh token and load the user it names."""
        if not refresh_token:
            raise MissingRefreshToken()

        try:
            claims = self.issuer.verify(refresh_token)
        except InvalidToken as e:
            logger.info("auth.refresh_token_rejected", reason=str(e))
            raise InvalidRefreshToken()

        user = await self.store.get(claims.user_id)
        if user is None:
            raise InvalidRefreshToken()
        return user

    async def refresh(self, refresh_token: Optional[str]) -> TokenPair:
        """Exchange a refresh token for a new pair (rotation).

        Learn: The presented token is removed as the new one is added, so
        each refresh token works exactly once. Presenting a token that
        verifies but is not stored clears every session of the user.
        """
        user = await self._owner_of(refresh_token)

        if refresh_token not in user.refresh_tokens:
            revoked = len(user.refresh_tokens)
            user.refresh_tokens = []
            await self.store.save(user)
            logger.warning(
                "auth.refresh_token_reused",
                user_id=str(user.id),
                revoked_sessions=revoked,
            )
            raise InvalidRefreshToken()

        tokens = self.issuer.issue_token_pair(user.id)
        user.refresh_tokens = [
            t for t in self._live(user.refresh_tokens) if t != refresh_token
        ] + [tokens.refresh_token]
        await self.store.save(user)

        logger.info("auth.token_refreshed", user_id=str(user.id))
        return tokens

    # ─── Logout ─────────────────────────────────────────

    async def logout(self, refresh_token: Optional[str]) -> None:
        """End one session by forgetting its refresh token."""
        user = await self._owner_of(refresh_token)

        if refresh_token not in user.refresh_tokens:
            raise InvalidRefreshToken()

        user.refresh_tokens = [t for t in user.refresh_tokens if t != refresh_token]
        await self.store.save(user)

        logger.info("auth.logged_out", user_id=str(user.id))
