"""FastAPI auth dependencies — the authorization gate.

Learn: These are used as Depends() in route handlers to extract
and validate the current user identity from the request.

Every failure (no header, wrong scheme, empty token, bad signature,
expired token) produces the same 401 "Unauthorized" — callers never
learn which check failed.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from trailsync.auth.jwt import InvalidToken, TokenIssuer
from trailsync.errors import Unauthorized

logger = structlog.get_logger()


class CurrentIdentity:
    """Represents the authenticated user making the request.

    Learn: Downstream handlers compare user_id to a resource's owner
    field to decide whether a mutation is allowed.
    """

    def __init__(self, user_id: str):
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id!r})"


def get_token_issuer(request: Request) -> TokenIssuer:
    """The process-wide issuer built by create_app()."""
    return request.app.state.token_issuer


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> CurrentIdentity:
    """Resolve the bearer access token to a caller identity (401 otherwise).

    Learn: The resolved identity is also attached to request.state and
    bound into the structlog context, so later log lines carry user_id.
    """
    token = _bearer_token(authorization)
    if token is None:
        raise Unauthorized()

    try:
        claims = issuer.verify(token)
    except InvalidToken as e:
        logger.info("auth.access_token_rejected", reason=str(e))
        raise Unauthorized()

    identity = CurrentIdentity(user_id=claims.user_id)
    request.state.identity = identity
    structlog.contextvars.bind_contextvars(user_id=identity.user_id)
    return identity
