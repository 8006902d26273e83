"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the bulletin board server lives on one dataclass:

    config = ServerConfig(port=9000, static_dir="./public", seed_demo_data=True)
    config.validate()

or comes from the environment:

    BOARD_PORT=9000 BOARD_STATIC_DIR=./public python -m bulletinboard

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .store.passwords import MIN_ROUNDS, MAX_ROUNDS


LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the bulletin board server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, backlog, buffer_size, timeout, max_request_size
    WORKERS     min_workers, max_workers, queue_size, queue_timeout
    BOARD       static_dir, session_ttl, password_rounds, seed_demo_data
    LOGGING     log_level, log_format
    IDENTITY    server_name

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind. "0.0.0.0" listens on every interface."""

    port: int = 8080
    """
    Port to listen on. 0 lets the OS pick a free port; the server reports
    the one it actually bound.
    """

    backlog: int = 32
    """Listen queue length."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Per-connection read/write deadline in seconds. A client that stalls
    longer is dropped.
    """

    max_request_size: int = 1024 * 1024  # 1 MiB
    """Largest request (head plus body) the server will buffer."""

    # ─────────────────────────────────────────────────────────────────────
    # WORKER POOL
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 32

    queue_size: int = 128
    """Connections waiting for a free worker."""

    queue_timeout: float = 5.0
    """
    How long the accept loop waits for room in the queue before the
    connection is answered with 503.
    """

    # ─────────────────────────────────────────────────────────────────────
    # BOARD
    # ─────────────────────────────────────────────────────────────────────

    static_dir: Optional[str] = None
    """Front-end directory. None disables static files entirely."""

    session_ttl: Optional[float] = 86400.0
    """Session lifetime in seconds. None keeps sessions until logout."""

    password_rounds: int = 12
    """bcrypt cost factor."""

    seed_demo_data: bool = False
    """Register the demo users and ads at startup."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "BulletinBoard/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        BOARD_HOST          Bind address (default: 127.0.0.1)
        BOARD_PORT          Bind port (default: 8080)
        BOARD_WORKERS       Max worker threads; min_workers is lowered to
                            match when needed (default: 32)
        BOARD_TIMEOUT       Connection timeout in seconds (default: 30)
        BOARD_STATIC_DIR    Front-end directory (default: none)
        BOARD_SESSION_TTL   Session lifetime in seconds, "none" to disable
                            expiry (default: 86400)
        BOARD_LOG_LEVEL     Logging level (default: INFO)

        =====================================================================
        """
        max_workers = int(os.getenv("BOARD_WORKERS", "32"))

        return cls(
            host=os.getenv("BOARD_HOST", "127.0.0.1"),
            port=int(os.getenv("BOARD_PORT", "8080")),
            min_workers=min(cls.min_workers, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv("BOARD_TIMEOUT", "30")),
            static_dir=os.getenv("BOARD_STATIC_DIR") or None,
            session_ttl=parse_ttl(os.getenv("BOARD_SESSION_TTL", "86400")),
            log_level=os.getenv("BOARD_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values. Called once at server construction.

        Raises:
            ValueError: On the first out-of-range setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.queue_timeout < 0:
            raise ValueError("queue_timeout must be >= 0")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size < 1024:
            raise ValueError("max_request_size must be >= 1024")

        if self.session_ttl is not None and self.session_ttl <= 0:
            raise ValueError("session_ttl must be > 0 or None")

        if not MIN_ROUNDS <= self.password_rounds <= MAX_ROUNDS:
            raise ValueError(
                f"password_rounds must be {MIN_ROUNDS}-{MAX_ROUNDS}, got {self.password_rounds}"
            )

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}")


def parse_ttl(value: Optional[str]) -> Optional[float]:
    """
    Read a session lifetime from text. "", "none", "0" and negative
    values mean sessions never expire.
    """
    if value is None or value.strip().lower() in ("", "none"):
        return None
    ttl = float(value)
    return ttl if ttl > 0 else None
