"""
=============================================================================
MIDDLEWARE
=============================================================================

    ┌───────────────────────────────────────────────────────────────────┐
    │ LoggingMiddleware   access log line + X-Request-ID   (outermost)  │
    │ AuthMiddleware      bearer token → request.user_id                │
    │ router.handle       endpoint, fallback or static file (innermost) │
    └───────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .auth import AuthMiddleware, extract_bearer_token

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
    "AuthMiddleware",
    "extract_bearer_token",
]
