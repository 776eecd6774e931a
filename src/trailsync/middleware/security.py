"""Security headers middleware.

Learn: Every response gets the baseline headers (no MIME sniffing, no
framing, limited referrer). Two kinds of path get more:

- /auth/* responses carry tokens → Cache-Control: no-store
- /uploads/* serves user-supplied files → a Content-Security-Policy
  that forbids scripts, so an uploaded file can never run as a page

HSTS is only sent on HTTPS connections.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

BASELINE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

TOKEN_PATHS = ("/auth/",)
UPLOAD_PATHS = ("/uploads/",)
UPLOAD_CSP = "default-src 'none'; img-src 'self'; sandbox"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(BASELINE_HEADERS)

        path = request.url.path
        if path.startswith(TOKEN_PATHS):
            response.headers["Cache-Control"] = "no-store"
        elif path.startswith(UPLOAD_PATHS):
            response.headers["Content-Security-Policy"] = UPLOAD_CSP

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response
