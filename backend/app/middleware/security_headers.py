"""
Security headers middleware.

WHY: Browser-enforced policies (no MIME sniffing, no framing, no referrer
leaks) cost nothing to send and protect the portal API responses. The
public CMS/Smart Objects endpoints are fetched cross-origin by customer
sites and only get the headers that do not interfere with that.
"""

from typing import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

# Only for the authenticated portal API
API_HEADERS = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds security headers to responses.

    Args:
        app: ASGI application
        api_prefixes: Path prefixes that receive the strict API headers
    """

    def __init__(self, app, api_prefixes: Iterable[str] = ("/api",)):
        super().__init__(app)
        self.api_prefixes = tuple(api_prefixes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for name, value in BASE_HEADERS.items():
            response.headers.setdefault(name, value)

        if request.url.path.startswith(self.api_prefixes):
            for name, value in API_HEADERS.items():
                response.headers.setdefault(name, value)

        return response
