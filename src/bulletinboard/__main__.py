"""
=============================================================================
BULLETIN BOARD CLI ENTRY POINT
=============================================================================

    # Run with defaults (localhost:8080, no static files)
    python -m bulletinboard

    # Serve the front-end and seed the demo accounts
    python -m bulletinboard --static ./public --demo

    # Listen on all interfaces, sessions valid for one hour
    python -m bulletinboard --host 0.0.0.0 --session-ttl 3600

Options not given on the command line fall back to the BOARD_* environment
variables (see ServerConfig.from_env), then to the built-in defaults.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .app import create_app
from .config import ServerConfig, LOG_FORMATS, parse_ttl


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bulletinboard",
        description="Bulletin board HTTP server: accounts, ads and responses over a JSON API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  bulletinboard                              # Run with defaults
  bulletinboard --port 3000                  # Custom port
  bulletinboard --static ./public --demo     # Front-end plus demo data
  bulletinboard --session-ttl none           # Sessions never expire
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080, 0 picks a free port)"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum number of worker threads (default: 32)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # BOARD ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--static", "-s",
        default=None,
        help="Directory with the front-end files (index.html, js, css)"
    )

    parser.add_argument(
        "--session-ttl",
        default=None,
        help="Session lifetime in seconds, or 'none' for no expiry (default: 86400)"
    )

    parser.add_argument(
        "--demo",
        action="store_true",
        help="Seed demo users and ads at startup"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default="text",
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"bulletinboard {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """
    Environment first, then every option given on the command line on top.
    """
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.max_workers = args.workers
        config.min_workers = min(config.min_workers, args.workers)
    if args.static is not None:
        config.static_dir = args.static
    if args.session_ttl is not None:
        config.session_ttl = parse_ttl(args.session_ttl)
    if args.log_level is not None:
        config.log_level = args.log_level

    config.log_format = args.log_format
    config.seed_demo_data = args.demo
    return config


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
        server = create_app(config)
    except ValueError as e:
        parser.error(str(e))

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
