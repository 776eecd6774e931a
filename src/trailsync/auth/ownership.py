"""Ownership policy for mutating routes.

Learn: Handlers look the resource up first (404 if missing) and only
then call require_owner(), so a missing resource is never reported as
a permission problem.
"""

import uuid

from trailsync.auth.dependencies import CurrentIdentity
from trailsync.errors import Forbidden


def is_owner(identity: CurrentIdentity, owner_id: uuid.UUID | str) -> bool:
    return str(owner_id) == identity.user_id


def require_owner(identity: CurrentIdentity, owner_id: uuid.UUID | str) -> None:
    """Raise Forbidden unless the caller owns the resource."""
    if not is_owner(identity, owner_id):
        raise Forbidden("You are not allowed to modify this resource")
