"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: read exactly one HTTP request, send
exactly one response, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

    Client sends:                 Server might receive:
        "POST /api/ads ..."           recv() → "POST /api/a"
                                      recv() → "ds HTTP/1.1\r\nHost: ..."

Data is buffered until the header terminator (\r\n\r\n) shows up, then
until Content-Length more bytes have arrived.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
               │                                      ▲
               │ timeout / oversize / malformed       │
               └──────────────────────────────────────┘
                    (dropped, no response written)

There is no keep-alive: every response carries "Connection: close" and
the socket is closed right after it is sent.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..http.request import HTTPParseError, parse_content_length


logger = logging.getLogger(__name__)


HEADER_TERMINATOR = b"\r\n\r\n"

# Upper bounds on reading leftovers before close()
DRAIN_BYTES = 64 * 1024
DRAIN_SECONDS = 0.5


class ConnectionState(Enum):
    """Connection lifecycle states, used in debug logs."""

    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents a client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │  1. BUFFERED READING                                                │
    │     └── recv() in buffer_size chunks until one request is complete │
    │                                                                     │
    │  2. DEADLINES                                                       │
    │     └── read_request() as a whole must finish within timeout       │
    │     └── sendall() waits at most timeout per call                   │
    │                                                                     │
    │  3. SIZE LIMIT                                                      │
    │     └── buffered bytes never exceed max_request_size               │
    │                                                                     │
    │  4. CLOSE                                                           │
    │     └── shutdown(SHUT_WR), bounded drain, close; idempotent        │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier for logs.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)
    _read_deadline: Optional[float] = field(default=None, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request from the socket.

        ┌─────────────────────────────────────────────────────────────────┐
        │   while no \\r\\n\\r\\n:     recv() → buffer  (EOF → None)         │
        │   Content-Length?        absent → 0, invalid → HTTPParseError   │
        │   while body short:      recv() → buffer  (EOF → stop early)    │
        │   return headers + body                                         │
        └─────────────────────────────────────────────────────────────────┘

        A body cut short by EOF is returned as is; the parser rejects it.

        Returns:
            Complete request bytes, or None if the peer closed before
            sending a full header section.

        Raises:
            TimeoutError: If a read exceeds the connection deadline.
            HTTPParseError: If the request is too large or its
                Content-Length is not a non-negative integer.
        """
        self.state = ConnectionState.READING
        self.last_activity = time.time()
        if self.timeout:
            self._read_deadline = time.monotonic() + self.timeout

        try:
            while HEADER_TERMINATOR not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._buffer += chunk
                self._check_size()

            header_end = self._buffer.find(HEADER_TERMINATOR)
            body_start = header_end + len(HEADER_TERMINATOR)
            content_length = self._parse_content_length(self._buffer[:header_end])

            if body_start + content_length > self.max_request_size:
                raise HTTPParseError(
                    f"Request too large: {body_start + content_length} bytes",
                    status_code=413,
                )

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break
                self._buffer += chunk
                self._check_size()

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = b""

            self.last_activity = time.time()
            return request_data

        except socket.timeout:
            raise TimeoutError(f"Request read timed out after {self.timeout}s")
        finally:
            self._read_deadline = None

    def _recv(self) -> bytes:
        """
        socket.recv() that maps an abrupt disconnect to EOF.

        Each call waits only for what is left of the read deadline, so a
        client sending one byte at a time still runs out of time.
        """
        if self._read_deadline is not None:
            remaining = self._read_deadline - time.monotonic()
            if remaining <= 0:
                raise socket.timeout("read deadline passed")
            self.socket.settimeout(remaining)

        try:
            data = self.socket.recv(self.buffer_size)
            self.last_activity = time.time()
            return data
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _check_size(self):
        if len(self._buffer) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(self._buffer)} bytes",
                status_code=413,
            )

    def _parse_content_length(self, headers: bytes) -> int:
        """
        Find Content-Length in the raw header section.

        Needed before the request can be parsed, so this scans the lines
        directly. The last occurrence wins, matching the parser.
        """
        header_str = headers.decode("utf-8", errors="replace")
        value = None
        for line in header_str.split("\r\n")[1:]:
            name, sep, rest = line.partition(":")
            if sep and name.lower() == "content-length":
                value = rest.strip()
        return parse_content_length(value)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response data to the client.

        sendall() keeps writing until every byte is out or the socket fails.

        Returns:
            True if the send succeeded, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING
        self.last_activity = time.time()

        try:
            if self.timeout:
                self.socket.settimeout(self.timeout)
            self.socket.sendall(data)
            self.last_activity = time.time()
            return True
        except (ConnectionResetError, BrokenPipeError, OSError) as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR) sends FIN, so the client sees end-of-response
        2. drain what the client still sends, at most DRAIN_BYTES or
           DRAIN_SECONDS, whichever comes first
        3. close() releases the descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self):
        deadline = time.monotonic() + DRAIN_SECONDS
        drained = 0
        try:
            while drained < DRAIN_BYTES:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass

    def __enter__(self):
        """
        Allows:
            with conn:
                data = conn.read_request()
                conn.send_response(response)
            # closed here
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
