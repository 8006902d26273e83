"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the listener, the worker pool and the request pipeline together.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐         │
    │    │   Listener   │    │  ThreadPool  │    │    Router    │         │
    │    │  (accept)    │    │  (workers)   │    │ (dispatch)   │         │
    │    └──────┬───────┘    └──────┬───────┘    └──────────────┘         │
    │           ▼                   ▼                                     │
    │    ┌──────────────┐    ┌─────────────────────────────────┐          │
    │    │  Connection  │    │  Logging → Auth → router.handle │          │
    │    └──────────────┘    └─────────────────────────────────┘          │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. The Listener accepts the TCP connection
    2. The connection is queued on the ThreadPool
       └── queue still full after queue_timeout → 503, close
    3. A worker reads one request
       └── EOF, timeout, oversize or unparsable → close, no response
    4. Middleware pipeline, then the router
       └── handler raises → 500 {"error":"Internal Server Error"}
    5. Response written with "Connection: close", socket closed

Exactly one request is served per connection.

=============================================================================
"""

import logging
import threading
from typing import Optional, Callable, Tuple

from .config import ServerConfig
from .core import Listener, Connection, ThreadPool
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, Router,
)
from .http.response import internal_error, service_unavailable
from .middleware import MiddlewarePipeline, Middleware


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Threaded HTTP/1.1 server.

    =========================================================================
    USAGE
    =========================================================================

        server = HTTPServer(ServerConfig(port=8080))

        @server.get("/api/ping")
        def ping(request):
            return ok({"pong": True})

        server.use(LoggingMiddleware())
        server.run()

    For tests, run() can be started on a background thread; wait on
    server.ready and read server.address to find the bound port, then call
    server.shutdown().

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults are used if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._listener = Listener(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = Router()
        self._middleware = MiddlewarePipeline()
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

    def use(self, middleware: Middleware) -> "HTTPServer":
        """
        Add middleware. The first one added is the outermost.

        Returns:
            Self for method chaining.
        """
        self._middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def ready(self) -> threading.Event:
        """Set once the listening socket is bound."""
        return self._listener.ready

    @property
    def address(self) -> Tuple[str, int]:
        """The (host, port) actually bound. Only valid once ready is set."""
        return self._listener.address

    @property
    def thread_pool(self) -> ThreadPool:
        return self._thread_pool

    def route(self, path: str, method: str, **kwargs):
        return self._router.route(path, method, **kwargs)

    def get(self, path: str, **kwargs):
        return self._router.get(path, **kwargs)

    def post(self, path: str, **kwargs):
        return self._router.post(path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self._router.delete(path, **kwargs)

    def run(self):
        """
        Start the server. Blocks until shutdown() or SIGINT/SIGTERM.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._setup_logging()
        self._handler = self._middleware.wrap(self._router.handle)
        self._thread_pool.start()

        logger.info(
            f"Starting {self.config.server_name} on {self.config.host}:{self.config.port} "
            f"({self.config.min_workers}-{self.config.max_workers} workers)"
        )
        for line in self._router.describe():
            logger.debug(f"Route: {line}")

        try:
            self._listener.serve(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """
        Ask the accept loop to stop. run() then drains the pool and returns.

        Safe to call from any thread and more than once.
        """
        self._listener.stop()

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._listener.wait_stopped(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("bulletinboard").setLevel(level)

    def _shutdown(self):
        """
        Graceful shutdown.

            1. stop accepting (the listener has already returned)
            2. let queued connections finish, bounded by the timeout
            3. stop the workers
        """
        logger.info("Shutting down server...")
        self._listener.stop()
        logger.debug(f"Pool stats: {self._thread_pool.stats}")
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout or 30.0)
        logger.info("Server stopped")

    def _handle_connection(self, conn: Connection):
        """
        Queue a connection for a worker. Runs on the accept thread.

        Waits up to queue_timeout for room in the queue; a connection that
        still does not fit is answered with 503 and closed.
        """
        try:
            submitted = self._thread_pool.submit(
                self._process_connection,
                args=(conn,),
                block=True,
                queue_timeout=self.config.queue_timeout,
            )
        except RuntimeError as e:
            logger.debug(f"[{conn.id}] {e}, closing connection")
            conn.close()
            return

        if not submitted:
            logger.warning(f"[{conn.id}] Worker queue full, rejecting connection")
            self._send(conn, service_unavailable("Server overloaded"))
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Serve exactly one request on conn (runs in a worker thread).

        Requests that cannot be read or parsed get no response at all; the
        connection is just closed.
        """
        with conn:
            if self.config.timeout and conn.age > self.config.timeout:
                logger.warning(f"[{conn.id}] Waited {conn.age:.2f}s for a worker, closing")
                return

            try:
                raw_request = conn.read_request()
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Dropping request from {conn.client_ip}: {e} ({e.status_code})")
                return
            except TimeoutError:
                logger.debug(f"[{conn.id}] Timed out waiting for request from {conn.client_ip}")
                return
            except OSError as e:
                logger.debug(f"[{conn.id}] Read error from {conn.client_ip}: {e}")
                return

            if raw_request is None:
                logger.debug(f"[{conn.id}] Client closed before sending a full request")
                return

            try:
                request = self._parser.parse(raw_request, conn.address)
            except HTTPParseError as e:
                logger.debug(f"[{conn.id}] Malformed request from {conn.client_ip}: {e}")
                return

            response = self.dispatch(request)
            self._send(conn, response)

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run a parsed request through middleware and routing.

        A handler exception becomes a 500; it never reaches the worker.
        """
        handler = self._handler or self._middleware.wrap(self._router.handle)
        try:
            return handler(request)
        except Exception as e:
            logger.exception(f"Handler error on {request.method} {request.path}: {e}")
            return internal_error()

    def _send(self, conn: Connection, response: HTTPResponse):
        if not conn.send_response(response.to_bytes(self.config.server_name)):
            logger.debug(f"[{conn.id}] Client went away before the response was sent")
