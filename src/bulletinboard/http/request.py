"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes of one request into an HTTPRequest.

=============================================================================
HTTP REQUEST FORMAT
=============================================================================

    POST /api/ads?draft=1 HTTP/1.1\r\n          ← Start line
    Host: localhost:8080\r\n                     ← Headers
    Authorization: Bearer 3f9c...\r\n
    Content-Type: application/x-www-form-urlencoded\r\n
    Content-Length: 33\r\n
    \r\n                                         ← Blank line
    title=Old+bike&description=Works             ← Body (Content-Length bytes)

=============================================================================
PARSING RULES
=============================================================================

    START LINE   "METHOD TARGET VERSION", split on whitespace.
                 A start line without a target is unparseable.
                 The version is kept but never branched on.

    TARGET       Split at the first '?':
                   "/api/ads?mine=1" → path "/api/ads", query "mine=1"
                   "?x=1"            → path "/" (empty path becomes "/")
                 The path itself is NOT percent-decoded.

    HEADERS      Split at the first ':'; name lower-cased, value trimmed.
                 Lines without ':' are skipped. A repeated header keeps
                 only its last value.

    BODY         Exactly Content-Length bytes after the blank line
                 (0 when the header is absent). Decoded into form
                 parameters when Content-Type is
                 application/x-www-form-urlencoded.

Anything the parser cannot make sense of raises HTTPParseError. The
connection handler answers that by dropping the connection without a
response.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict

from .urlencoded import parse_params


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the status code that would describe the failure. The server
    does not send it (malformed requests are dropped), but it is logged.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method          "GET", "POST", ... (as sent, not validated)
        path            Target without the query string, "/" if empty
        raw_target      Target exactly as it appeared on the start line
        version         "HTTP/1.1" (informational only)
        headers         Lower-cased name → value
        query_params    Decoded query string parameters
        form_params     Decoded urlencoded body parameters
        body            Raw body bytes
        path_params     Filled in by the router ({"id": "42"})
        client_address  (ip, port) of the peer

        session_token   Bearer token from the Authorization header
        user_id         User the token resolved to, or None
                        (both filled in by AuthMiddleware)

    =========================================================================
    """

    method: str
    path: str
    raw_target: str = ""
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, str] = field(default_factory=dict)
    form_params: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    path_params: Dict[str, str] = field(default_factory=dict)
    client_address: tuple[str, int] = ("", 0)

    session_token: Optional[str] = None
    user_id: Optional[int] = None

    @property
    def content_type(self) -> str:
        """Content-Type without parameters, lower-cased ("" if absent)."""
        return self.headers.get("content-type", "").split(";")[0].strip().lower()

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value (case-insensitive lookup).

        Example:
            request.get_header("Authorization")  # same as "authorization"
        """
        return self.headers.get(name.lower(), default)

    def get_param(self, name: str) -> str:
        """
        Get a request parameter.

        Form body parameters take precedence over query parameters.
        A parameter missing from both is "" rather than an error.

        Example:
            # POST /api/ads?title=a   with body   title=b
            request.get_param("title")    # "b"
            request.get_param("missing")  # ""
        """
        if name in self.form_params:
            return self.form_params[name]
        return self.query_params.get(name, "")


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

        Raw Request Bytes
              │
              ▼
        ┌──────────────────────────────────────────────────────────────┐
        │  1. Size check             too large → HTTPParseError(413)   │
        │  2. Find \\r\\n\\r\\n          missing   → HTTPParseError        │
        │  3. Start line             no target → HTTPParseError        │
        │  4. Headers                lenient, last value wins          │
        │  5. Body                   Content-Length bytes, must exist  │
        │  6. Query + form params    shared percent-decoder            │
        └──────────────────────────────────────────────────────────────┘
              │
              ▼
        HTTPRequest
    """

    def __init__(self, max_request_size: int = 1024 * 1024):
        """
        Args:
            max_request_size: Largest accepted request (headers + body).
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw request bytes as read from the socket.
            client_address: Peer (ip, port), kept for logging.

        Returns:
            Parsed HTTPRequest.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        lines = header_section.split("\r\n")

        method, raw_target, version = self._parse_start_line(lines[0])
        path, _, query_string = raw_target.partition("?")
        if not path:
            path = "/"

        headers = self._parse_headers(lines[1:])

        content_length = parse_content_length(headers.get("content-length"))
        body_start = header_end + 4
        body = data[body_start:body_start + content_length]
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        request = HTTPRequest(
            method=method,
            path=path,
            raw_target=raw_target,
            version=version,
            headers=headers,
            query_params=parse_params(query_string),
            body=body,
            client_address=client_address,
        )

        if FORM_CONTENT_TYPE in headers.get("content-type", "").lower():
            request.form_params = parse_params(body.decode("utf-8", errors="replace"))

        return request

    def _parse_start_line(self, line: str) -> tuple[str, str, str]:
        """
        Split "METHOD TARGET VERSION".

        Only METHOD and TARGET are required; a missing version is "".
        """
        parts = line.split()
        if len(parts) < 2:
            raise HTTPParseError(f"Invalid start line: {line!r}")

        method, target = parts[0], parts[1]
        version = parts[2] if len(parts) > 2 else ""
        return method, target, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" lines into a dict with lower-case names.

            "Content-Type:  text/plain "  → {"content-type": "text/plain"}
            "X-Flag"                      → skipped (no colon)
            "A: 1" then "a: 2"            → {"a": "2"}
        """
        headers: Dict[str, str] = {}

        for line in lines:
            if not line:
                continue
            name, sep, value = line.partition(":")
            if not sep:
                continue
            headers[name.lower()] = value.strip()

        return headers


def parse_content_length(value: Optional[str]) -> int:
    """
    Interpret a Content-Length header value.

    Absent means 0. Anything that is not a non-negative integer raises
    HTTPParseError.
    """
    if value is None or value == "":
        return 0
    try:
        length = int(value)
    except ValueError:
        raise HTTPParseError(f"Invalid Content-Length: {value!r}")
    if length < 0:
        raise HTTPParseError(f"Invalid Content-Length: {value!r}")
    return length


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 1024 * 1024
) -> HTTPRequest:
    """
    Parse a request in one call.

    Creates a RequestParser and parses the data with it.
    """
    parser = RequestParser(max_request_size=max_size)
    return parser.parse(data, client_address)
