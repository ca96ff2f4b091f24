"""
CORS handling for the public CMS and Smart Objects endpoints.

WHAT: Answers preflight requests and attaches wide-open CORS headers on the
public endpoints that customer sites call from the browser.

WHY: Customer sites live on arbitrary origins, so these endpoints accept any
origin, while the portal API stays restricted to TRUSTED_ORIGINS by
Starlette's CORSMiddleware. This middleware is installed outermost so a
preflight to a public path never reaches the restrictive CORS layer, and
so error responses get the headers too.
"""

from typing import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

PUBLIC_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}

PUBLIC_PATH_PREFIXES = (
    "/cms/",
    "/get-schema",
    "/get-dynamic-table-data/",
    "/get-object/",
    "/create-dynamic-table-data/",
    "/update-object/",
    "/delete-object/",
)


def is_public_path(path: str, prefixes: Iterable[str] = PUBLIC_PATH_PREFIXES) -> bool:
    return any(path.startswith(prefix) for prefix in prefixes)


class PublicCORSMiddleware(BaseHTTPMiddleware):
    """
    Open CORS for public paths, pass-through for everything else.

    Args:
        app: ASGI application
        prefixes: Path prefixes treated as public
    """

    def __init__(self, app, prefixes: Iterable[str] = PUBLIC_PATH_PREFIXES):
        super().__init__(app)
        self.prefixes = tuple(prefixes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not is_public_path(request.url.path, self.prefixes):
            return await call_next(request)

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=PUBLIC_CORS_HEADERS)

        response = await call_next(request)
        for name, value in PUBLIC_CORS_HEADERS.items():
            response.headers[name] = value
        return response
