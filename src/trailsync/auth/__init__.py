"""Authentication and authorization.

Learn: Users authenticate with email/password and receive a JWT pair:
a short-lived access token for API calls and a longer-lived refresh
token that can be exchanged exactly once for a new pair.

Refresh tokens are tracked on the user row, so a token that was already
exchanged is recognised on reuse and revokes every session of that user.
Mutating routes additionally check that the caller owns the resource.
"""
