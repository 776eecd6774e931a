"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (1 hour), used for API calls
- Refresh token: longer-lived (1 day), exchanged for a new pair

Both tokens carry only the user id ("sub"). A random "jti" makes every
token unique, even two minted for the same user in the same second.
The issuer is built once from Settings and shared via app.state.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from trailsync.config import Settings


class InvalidToken(Exception):
    """Raised when a token fails signature, format, or expiry checks."""


@dataclass(frozen=True)
class TokenPair:
    token: str
    refresh_token: str


@dataclass(frozen=True)
class TokenClaims:
    user_id: str


class TokenIssuer:
    """Mints and verifies access/refresh tokens with one shared secret."""

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self.access_ttl = timedelta(seconds=settings.access_token_expire_seconds)
        self.refresh_ttl = timedelta(seconds=settings.refresh_token_expire_seconds)

    def _sign(self, user_id: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + ttl,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_token_pair(self, user_id: str | uuid.UUID) -> TokenPair:
        """Create an access token and a refresh token for a user."""
        user_id = str(user_id)
        return TokenPair(
            token=self._sign(user_id, self.access_ttl),
            refresh_token=self._sign(user_id, self.refresh_ttl),
        )

    def verify(self, token: str) -> TokenClaims:
        """Verify and decode a token.

        Returns the claims on success. Raises InvalidToken on a bad
        signature, a malformed token, a missing subject, or expiry.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidToken(f"Invalid token: {e}")
        return TokenClaims(user_id=payload["sub"])
