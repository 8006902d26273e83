"""
=============================================================================
LISTENER
=============================================================================

Owns the listening socket. Every accepted client is wrapped in a
Connection and passed to the callback given to serve().

    bind ──► listen ──► ready.set() ──► accept ──► Connection ──► on_accept
                                           ▲                         │
                                           └─────────────────────────┘

accept() gives up after ACCEPT_POLL seconds so the loop sees stop()
requests coming from other threads or from SIGINT/SIGTERM.

With port 0 the OS chooses the port; read it from `address` once `ready`
is set.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Callable, Dict, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ACCEPT_POLL = 1.0

AcceptCallback = Callable[[Connection], None]


class Listener:
    """
    Accepts TCP connections for the board server.

        listener = Listener(config)
        listener.serve(on_accept)   # returns after stop()

    serve() raises OSError when the address cannot be bound.
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self.ready = threading.Event()
        self.accepted = 0

        self._sock: Optional[socket.socket] = None
        self._bound: Optional[Tuple[str, int]] = None
        self._stopped = threading.Event()
        self._saved_signals: Dict[int, object] = {}

    @property
    def is_running(self) -> bool:
        return self.ready.is_set() and not self._stopped.is_set()

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port), or the configured pair before binding."""
        return self._bound or (self.config.host, self.config.port)

    def _open(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(ACCEPT_POLL)

        try:
            sock.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Cannot bind {self.config.host}:{self.config.port}: {e}")
            sock.close()
            raise

        sock.listen(self.config.backlog)
        return sock

    def _trap_signals(self):
        # signal.signal() is only allowed on the main thread
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Serving off the main thread, signal handlers left alone")
            return

        def on_signal(signum, frame):
            logger.info(f"{signal.Signals(signum).name} received, stopping")
            self.stop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._saved_signals[sig] = signal.signal(sig, on_signal)

    def _release_signals(self):
        while self._saved_signals:
            sig, previous = self._saved_signals.popitem()
            signal.signal(sig, previous)

    def serve(self, on_accept: AcceptCallback):
        """
        Bind, then accept until stop() is called.

        Args:
            on_accept: Called on the accept thread with each new Connection.
                It should hand the connection off quickly.
        """
        self._stopped.clear()
        self._sock = self._open()
        self._bound = self._sock.getsockname()[:2]
        self._trap_signals()

        logger.info(f"Listening on {self._bound[0]}:{self._bound[1]}")
        self.ready.set()

        try:
            while not self._stopped.is_set():
                conn = self._accept()
                if conn is not None:
                    on_accept(conn)
        finally:
            self._close()

    def _accept(self) -> Optional[Connection]:
        """Next connection, or None on poll timeout or after a failed accept."""
        try:
            client, peer = self._sock.accept()
        except socket.timeout:
            return None
        except OSError as e:
            if not self._stopped.is_set():
                logger.error(f"accept() failed: {e}")
                self.stop()
            return None

        self.accepted += 1
        logger.debug(f"Connection #{self.accepted} from {peer[0]}:{peer[1]}")

        return Connection(
            socket=client,
            address=peer,
            buffer_size=self.config.buffer_size,
            timeout=self.config.timeout,
            max_request_size=self.config.max_request_size,
        )

    def stop(self):
        """Ask serve() to return. Any thread, any number of times."""
        if self._stopped.is_set():
            return
        logger.info("Listener stopping")
        self._stopped.set()

    def _close(self):
        self._release_signals()

        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None

        self.ready.clear()
        logger.info(f"Listener closed after {self.accepted} connections")

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """True once stop() has been called, False if timeout ran out first."""
        return self._stopped.wait(timeout)
