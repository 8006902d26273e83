"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Callable, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bulletinboard import HTTPServer, ServerConfig, create_app
from bulletinboard.store import BoardStore


# bcrypt's minimum cost keeps the store tests fast
TEST_ROUNDS = 4


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request with a query string and a bearer token."""
    return (
        b"GET /api/ads?page=1&q=bike%20red HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Authorization: Bearer abc123\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a urlencoded body."""
    body = b"title=Old+Bike&description=Red%2C+rusty&price=12.50"
    return (
        b"POST /api/ads HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/x-www-form-urlencoded\r\n"
        b"Content-Length: " + str(len(body)).encode() + b"\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def store() -> BoardStore:
    """A fresh, empty store with cheap password hashing."""
    return BoardStore(password_rounds=TEST_ROUNDS)


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        password_rounds=TEST_ROUNDS,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class RunningServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: HTTPServer, store: BoardStore):
        self.server = server
        self.store = store
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.ready.wait(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes and read until the server closes the connection."""
        with socket.create_connection(self.address, timeout=timeout) as sock:
            sock.sendall(raw)
            chunks = []
            while True:
                chunk = sock.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def running_server_factory() -> Generator[Callable[[ServerConfig, BoardStore], RunningServer], None, None]:
    """Start applications with custom configuration; all are stopped afterwards."""
    started = []

    def factory(config: ServerConfig, store: BoardStore) -> RunningServer:
        running = RunningServer(create_app(config, store), store)
        running.start()
        started.append(running)
        return running

    yield factory

    for running in started:
        running.stop()


@pytest.fixture
def running_server(config: ServerConfig, store: BoardStore, running_server_factory) -> RunningServer:
    """The full application on a free port."""
    return running_server_factory(config, store)
