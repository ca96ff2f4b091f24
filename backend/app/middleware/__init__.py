"""
Middleware package.

WHY: Middleware provides cross-cutting concerns like security headers,
request correlation and CORS that apply to all requests.
"""

from app.middleware.security_headers import SecurityHeadersMiddleware
from app.middleware.request_context import (
    RequestContextMiddleware,
    RequestIdLogFilter,
    get_request_context,
    get_client_ip,
    get_user_agent,
    RequestContext,
)
from app.middleware.public_cors import (
    PublicCORSMiddleware,
    PUBLIC_CORS_HEADERS,
    is_public_path,
)

__all__ = [
    "SecurityHeadersMiddleware",
    "RequestContextMiddleware",
    "RequestIdLogFilter",
    "get_request_context",
    "get_client_ip",
    "get_user_agent",
    "RequestContext",
    "PublicCORSMiddleware",
    "PUBLIC_CORS_HEADERS",
    "is_public_path",
]
