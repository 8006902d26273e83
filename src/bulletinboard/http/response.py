"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds the one HTTP/1.1 response each connection gets before it is closed.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │    HTTP/1.1 409 Conflict\r\n                    ← Status line       │
    │    Content-Type: application/json; charset=utf-8\r\n                │
    │    Content-Length: 55\r\n                       ← Exact body bytes  │
    │    Connection: close\r\n                        ← Always            │
    │    Server: BulletinBoard/1.0\r\n                                    │
    │    Date: Wed, 01 Jan 2026 12:00:00 GMT\r\n                          │
    │    X-Request-ID: 1f0c9a2e\r\n                   ← Handler headers   │
    │    \r\n                                                             │
    │    {"error":"You have already responded to this advertisement"}     │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The first five headers are written by to_bytes() in that fixed order.
Handler-supplied headers follow; a handler cannot override the framing
headers (Content-Type is set through the content_type field instead).

Unknown status codes get the generic phrase of their class
("HTTP/1.1 418 Client Error"), never "OK".

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union

from .jsonbody import dumps
from .status_codes import HTTPStatus, reason_phrase


JSON_CONTENT_TYPE = "application/json; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

DEFAULT_SERVER_NAME = "BulletinBoard/1.0"

# Written by to_bytes(); ignored when they appear in HTTPResponse.headers.
_FRAMING_HEADERS = frozenset(
    ["content-type", "content-length", "connection", "server", "date"]
)


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

        Handler returns          to_bytes()              Connection sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
                                                         (sendall, then close)
    """

    status: int = HTTPStatus.OK
    content_type: str = JSON_CONTENT_TYPE
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status)} {reason_phrase(int(self.status))}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """
        Set a response header. Returns self for chaining.
        """
        self.headers[name] = value
        return self

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive lookup among the handler-supplied headers."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the body; strings are encoded as UTF-8."""
        if isinstance(body, str):
            self.body = body.encode("utf-8")
        else:
            self.body = body
        return self

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        Args:
            server_name: Value of the Server header.

        Returns:
            Complete HTTP response ready for socket.sendall().
        """
        lines = [
            self.status_line,
            f"Content-Type: {self.content_type}",
            f"Content-Length: {len(self.body)}",
            "Connection: close",
            f"Server: {server_name}",
            f"Date: {format_http_date(datetime.now(timezone.utc))}",
        ]

        for name, value in self.headers.items():
            if name.lower() in _FRAMING_HEADERS:
                continue
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.CREATED)
            .json({"success": True})
            .header("X-Request-ID", request_id)
            .build())

    Every method returns self except build().
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._content_type = JSON_CONTENT_TYPE
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        self._content_type = content_type
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body (raw bytes or string).

        For structured data, prefer json() or text().
        """
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def text(self, text: str, content_type: str = TEXT_CONTENT_TYPE) -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._content_type = content_type
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """
        Set a compact JSON body.

        Money (Decimal) is written with two decimals, see jsonbody.dumps().
        """
        self._body = dumps(data).encode("utf-8")
        self._content_type = JSON_CONTENT_TYPE
        return self

    def no_cache(self) -> "ResponseBuilder":
        self._headers["Cache-Control"] = "no-cache"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            content_type=self._content_type,
            headers=self._headers,
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are always in GMT, never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One-liners for the responses the API produces:
#
#     return ok({"success": True})
#     return error(HTTPStatus.CONFLICT, "Email already registered")
#
# =============================================================================

def ok(body: Union[dict, list]) -> HTTPResponse:
    """200 with a JSON body."""
    return ResponseBuilder().json(body).build()


def error(status: int, message: str) -> HTTPResponse:
    """
    Create an error response with body {"error": message}.

    Every API failure goes through here, so all of them share one shape.
    """
    return ResponseBuilder().status(status).json({"error": message}).build()


def unauthorized(message: str = "Authentication required") -> HTTPResponse:
    """
    401: the caller is not authenticated. Ownership failures are 403 and
    come from the store through error().
    """
    return error(HTTPStatus.UNAUTHORIZED, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error(HTTPStatus.NOT_FOUND, message)


def text_not_found() -> HTTPResponse:
    """The plain-text 404 sent when neither the API nor a static file matches."""
    return (ResponseBuilder()
        .status(HTTPStatus.NOT_FOUND)
        .text("Not Found")
        .build())


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500. Never carries exception details."""
    return error(HTTPStatus.INTERNAL_SERVER_ERROR, message)


def service_unavailable(message: str = "Service Unavailable") -> HTTPResponse:
    """503, sent by the listener when the worker pool cannot take more work."""
    return error(HTTPStatus.SERVICE_UNAVAILABLE, message)


def file_response(
    content: bytes,
    content_type: str,
    extra_headers: Optional[Dict[str, str]] = None
) -> HTTPResponse:
    """200 with raw file bytes, used by the static handler."""
    builder = ResponseBuilder().content_type(content_type).body(content)
    if extra_headers:
        builder.headers(extra_headers)
    return builder.build()
