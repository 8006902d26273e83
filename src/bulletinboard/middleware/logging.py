"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per request on the "bulletinboard.access" logger.

TEXT (Apache-like):

    127.0.0.1 - 3 [16/Oct/2026:10:15:32 +0000] "POST /api/ads" 200 131 2.41ms 1f0c9a2e

JSON:

    {"request_id": "1f0c9a2e", "method": "POST", "path": "/api/ads",
     "client_ip": "127.0.0.1", "user_id": 3, "status_code": 200, ...}

The "user" column is the authenticated user id, or "-". Query strings are
never logged: they may carry passwords.

Every response also gets an X-Request-ID header with the same id, so a
client report can be matched to its log line.

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("bulletinboard.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one request.

    request_id:     Also sent back as X-Request-ID
    method, path:   From the start line (path without query string)
    client_ip:      Peer address
    user_agent:     "-" if absent
    user_id:        Authenticated user, None if anonymous
    status_code:    Response status
    content_length: Response body size in bytes
    duration_ms:    Time spent inside the chain
    timestamp:      Local time, Apache format
    """

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    user_id: Optional[int]
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        user = self.user_id if self.user_id is not None else "-"
        return (
            f'{self.client_ip} - {user} [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms {self.request_id}'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Goes first in the pipeline so it times and logs everything, including
    requests answered early by later middleware:

        pipeline.add(LoggingMiddleware(log_format="json"))
        pipeline.add(AuthMiddleware(store))

    5xx responses are logged at WARNING, everything else at log_level.
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
    ):
        """
        Args:
            log_format: "text" or "json".
            include_request_id: Add X-Request-ID to responses.
            log_level: Level for ordinary access lines.
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format!r}")

        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms) {request_id}"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        log_entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            user_id=request.user_id,
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        level = logging.WARNING if log_entry.status_code >= 500 else self.log_level
        if self.log_format == "json":
            logger.log(level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(level, log_entry.to_text())

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        return response
