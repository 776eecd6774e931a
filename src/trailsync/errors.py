"""Error taxonomy shared by services and the HTTP layer.

Learn: Services raise these typed errors instead of building HTTP
responses. main.create_app() installs one exception handler that turns
any TrailSyncError into its status code + {"error": message} body, so
every operation has a single failure contract.

    ValidationError      400  missing / malformed request fields
    AuthenticationError  401  bad credentials, bad or reused token
    AuthorizationError   403  valid identity, wrong owner
    NotFoundError        404  resource absent
    InternalError        500  unexpected storage failure
"""

from typing import Optional


class TrailSyncError(Exception):
    """Base class for every error that maps to an HTTP response."""

    status_code: int = 500
    default_message: str = "An unknown error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


# ─── Taxonomy ────────────────────────────────────────────


class ValidationError(TrailSyncError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(TrailSyncError):
    status_code = 401
    default_message = "Authentication failed"


class AuthorizationError(TrailSyncError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(TrailSyncError):
    status_code = 404
    default_message = "Data not found"


class InternalError(TrailSyncError):
    status_code = 500


# ─── Specific kinds ──────────────────────────────────────


class MissingCredentials(ValidationError):
    default_message = "Email and password are required"


class MissingRefreshToken(ValidationError):
    default_message = "Refresh token is required"


class InvalidCredentials(AuthenticationError):
    default_message = "Invalid email or password"


class InvalidRefreshToken(AuthenticationError):
    default_message = "Invalid refresh token"


class RegistrationFailed(AuthenticationError):
    default_message = "Registration failed"


class Unauthorized(AuthenticationError):
    default_message = "Unauthorized"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AuthorizationError):
    default_message = "Forbidden"


class NotFound(NotFoundError):
    pass


class LoginFailed(InternalError):
    default_message = "Login failed"
