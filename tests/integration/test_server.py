"""
Integration tests: the full server on a real socket.
"""

import json
import socket
import threading
import time
from typing import Optional, Tuple
from urllib.parse import urlencode

import pytest

from bulletinboard import ServerConfig, create_app
from bulletinboard.store import BoardStore


def build_request(
    method: str,
    path: str,
    params: Optional[dict] = None,
    token: Optional[str] = None,
) -> bytes:
    body = urlencode(params).encode() if params else b""
    lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
    if token:
        lines.append(f"Authorization: Bearer {token}")
    if params:
        lines.append("Content-Type: application/x-www-form-urlencoded")
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode() + body


def split_response(raw: bytes) -> Tuple[int, dict, bytes]:
    """(status, lower-cased headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode().split("\r\n")
    status = int(lines[0].split()[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return status, headers, body


class TestEndToEnd:
    """A whole session against the running server."""

    def call(self, running_server, *args, **kwargs):
        status, headers, body = split_response(running_server.request(build_request(*args, **kwargs)))
        assert int(headers["content-length"]) == len(body)
        return status, headers, body

    def test_full_flow(self, running_server):
        status, _, body = self.call(running_server, "POST", "/api/register",
                                    {"name": "Ann", "email": "ann@example.com", "password": "secret"})
        assert status == 200
        self.call(running_server, "POST", "/api/register",
                  {"name": "Bob", "email": "bob@example.com", "password": "secret"})

        _, _, body = self.call(running_server, "POST", "/api/login",
                               {"email": "ann@example.com", "password": "secret"})
        ann = json.loads(body)["token"]
        _, _, body = self.call(running_server, "POST", "/api/login",
                               {"email": "bob@example.com", "password": "secret"})
        bob = json.loads(body)["token"]

        status, _, body = self.call(running_server, "POST", "/api/ads",
                                    {"title": "Bike", "description": "Red", "price": "40"}, token=ann)
        assert status == 200
        ad_id = json.loads(body)["ad"]["id"]

        status, _, _ = self.call(running_server, "POST", f"/api/ads/{ad_id}/respond", token=bob)
        assert status == 200

        _, _, body = self.call(running_server, "GET", f"/api/ads/{ad_id}/responders", token=ann)
        assert json.loads(body) == {"responders": [{"id": 2, "name": "Bob", "email": "bob@example.com"}]}

        _, _, body = self.call(running_server, "GET", "/api/ads/my-responses", token=bob)
        assert [ad["id"] for ad in json.loads(body)["ads"]] == [ad_id]

        status, _, _ = self.call(running_server, "DELETE", f"/api/ads/{ad_id}", token=ann)
        assert status == 200

        self.call(running_server, "POST", "/api/logout", token=ann)
        _, _, body = self.call(running_server, "GET", "/api/session", token=ann)
        assert json.loads(body) == {"authenticated": False}

    def test_response_headers(self, running_server):
        status, headers, body = self.call(running_server, "GET", "/api/ads")

        assert status == 200
        assert body == b'{"ads":[]}'
        assert headers["content-type"] == "application/json; charset=utf-8"
        assert headers["connection"] == "close"
        assert headers["server"] == "BulletinBoard/1.0"
        assert headers["date"].endswith("GMT")
        assert len(headers["x-request-id"]) == 8

    def test_status_line(self, running_server):
        raw = running_server.request(build_request("POST", "/api/login", {"email": "x@y.z", "password": "p"}))

        assert raw.startswith(b"HTTP/1.1 401 Unauthorized\r\n")

    def test_unknown_api_endpoint(self, running_server):
        status, _, body = self.call(running_server, "GET", "/api/nope")

        assert status == 404
        assert body == b'{"error":"Endpoint not found"}'

    def test_static_miss_is_plain_text(self, running_server):
        status, headers, body = self.call(running_server, "GET", "/index.html")

        assert status == 404
        assert headers["content-type"].startswith("text/plain")
        assert body == b"Not Found"

    def test_query_string_parameters(self, running_server):
        status, _, _ = self.call(running_server, "POST",
                                 "/api/register?name=Q&email=q%40example.com&password=pw")

        assert status == 200
        assert running_server.store.get_user(1).email == "q@example.com"


class TestDroppedRequests:
    """Requests the server closes without answering."""

    @pytest.mark.parametrize("raw", [
        b"GARBAGE\r\n\r\n",
        b"POST /api/ads HTTP/1.1\r\nContent-Length: nope\r\n\r\n",
        b"POST /api/ads HTTP/1.1\r\nContent-Length: -3\r\n\r\n",
    ])
    def test_malformed_request_gets_no_response(self, running_server, raw: bytes):
        assert running_server.request(raw) == b""

    def test_truncated_body_gets_no_response(self, running_server):
        with socket.create_connection(running_server.address, timeout=5.0) as sock:
            sock.sendall(b"POST /api/ads HTTP/1.1\r\nContent-Length: 100\r\n\r\nshort")
            sock.shutdown(socket.SHUT_WR)
            assert sock.recv(1024) == b""

    def test_client_disconnect_before_headers(self, running_server):
        with socket.create_connection(running_server.address, timeout=5.0) as sock:
            sock.sendall(b"GET / HTTP/1.1\r\n")

        # the server is still serving afterwards
        assert running_server.request(build_request("GET", "/api/ads")).startswith(b"HTTP/1.1 200")


class TestOversize:
    """Requests over max_request_size."""

    @pytest.fixture
    def small_server(self, config: ServerConfig, store: BoardStore, running_server_factory):
        config.max_request_size = 1024
        return running_server_factory(config, store)

    def test_oversize_request_dropped(self, small_server):
        raw = build_request("POST", "/api/register", {"name": "x" * 4000, "email": "a", "password": "b"})

        with socket.create_connection(small_server.address, timeout=5.0) as sock:
            try:
                sock.sendall(raw)
                response = sock.recv(1024)
            except (ConnectionResetError, BrokenPipeError):
                response = b""

        assert response == b""

    def test_streaming_oversize_client_frees_worker(
        self, config: ServerConfig, store: BoardStore, running_server_factory,
    ):
        """Test that a client streaming past the limit does not hold the only worker."""
        config.min_workers = config.max_workers = 1
        config.max_request_size = 4096
        server = running_server_factory(config, store)
        stop = threading.Event()

        def stream():
            try:
                with socket.create_connection(server.address, timeout=5.0) as sock:
                    sock.sendall(b"POST /api/ads HTTP/1.1\r\nContent-Length: 100000000\r\n\r\n")
                    while not stop.is_set():
                        sock.sendall(b"x" * 8192)
            except OSError:
                pass

        streamer = threading.Thread(target=stream, daemon=True)
        streamer.start()
        time.sleep(0.2)  # let the streaming client take the worker first
        try:
            raw = server.request(build_request("GET", "/api/session"), timeout=4.0)
        finally:
            stop.set()
            streamer.join(timeout=5.0)

        assert raw.startswith(b"HTTP/1.1 200")


class TestConcurrency:
    """Many clients at once."""

    def test_concurrent_ad_creation(self, running_server):
        store = running_server.store
        owner = store.register_user("Ann", "ann@example.com", "secret")
        token = store.create_session(owner.id).token

        ids = []
        errors = []
        lock = threading.Lock()

        def create(i: int):
            try:
                raw = running_server.request(build_request(
                    "POST", "/api/ads", {"title": f"Ad {i}", "description": "d"}, token=token,
                ))
                status, _, body = split_response(raw)
                assert status == 200
                with lock:
                    ids.append(json.loads(body)["ad"]["id"])
            except Exception as e:  # collected and asserted below
                with lock:
                    errors.append(e)

        threads = [threading.Thread(target=create, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30.0)

        assert errors == []
        assert sorted(ids) == list(range(1, 21))

        listed = [ad.id for ad in store.list_ads(None)]
        assert listed == sorted(listed)


class TestLifecycle:
    """Start and stop behaviour."""

    def test_shutdown_is_idempotent(self, running_server):
        running_server.server.shutdown()
        running_server.server.shutdown()

        assert running_server.server.wait_for_shutdown(timeout=1.0)

    def test_bound_port_reported(self, running_server):
        host, port = running_server.address

        assert host == "127.0.0.1"
        assert port > 0

    def test_port_in_use(self, running_server, config: ServerConfig, store: BoardStore):
        config.port = running_server.address[1]
        server = create_app(config, store)

        with pytest.raises(OSError):
            server.run()
