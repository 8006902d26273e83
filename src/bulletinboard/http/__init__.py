"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

Translates the raw bytes of one TCP connection into a structured request
and a structured response back into bytes. Nothing in here knows about
users, ads or sessions.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py       bytes → HTTPRequest (start line, headers, body,    │
    │                  query and form parameters)                         │
    │ urlencoded.py    shared percent-decoder for query strings and forms │
    │ response.py      HTTPResponse → bytes, ResponseBuilder, helpers     │
    │ jsonbody.py      compact JSON writer (money with two decimals)      │
    │ router.py        (method, path) → handler, ":id<int>" parameters    │
    │ status_codes.py  status codes and reason phrases                    │
    │ mime_types.py    file extension → Content-Type                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    error,
    unauthorized,
    not_found,
    text_not_found,
    internal_error,
    service_unavailable,
    file_response,
)
from .router import Router, Route, RouteMatch
from .status_codes import HTTPStatus, reason_phrase
from .mime_types import get_mime_type, get_content_type
from .urlencoded import percent_decode, parse_params
from . import jsonbody

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "percent_decode",
    "parse_params",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "error",
    "unauthorized",
    "not_found",
    "text_not_found",
    "internal_error",
    "service_unavailable",
    "file_response",
    "jsonbody",

    # Routing
    "Router",
    "Route",
    "RouteMatch",

    # Status codes
    "HTTPStatus",
    "reason_phrase",

    # MIME types
    "get_mime_type",
    "get_content_type",
]
