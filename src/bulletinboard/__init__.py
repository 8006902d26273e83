"""
=============================================================================
BULLETINBOARD - Embedded HTTP/1.1 Bulletin Board Server
=============================================================================

A small classified-ads board served by its own HTTP server: users register,
log in with a bearer token, post and delete ads, respond to other people's
ads, and owners see who responded.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    bulletinboard/
    ├── __init__.py          # Package exports
    ├── __main__.py          # CLI entry point (python -m bulletinboard)
    ├── app.py               # create_app(): store + middleware + routes
    ├── server.py            # HTTPServer: listener, pool, dispatch
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Sockets and threads
    │   ├── listener.py      # TCP listener
    │   ├── connection.py    # One client connection
    │   └── thread_pool.py   # Bounded worker pool
    ├── http/                # Wire format
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response encoding and helpers
    │   ├── router.py        # Exact-match routing
    │   ├── jsonbody.py      # Compact JSON writer
    │   ├── urlencoded.py    # Form and query decoding
    │   ├── mime_types.py    # Static file content types
    │   └── status_codes.py  # Status codes and reason phrases
    ├── middleware/          # Request pipeline
    │   ├── base.py          # Middleware and pipeline
    │   ├── logging.py       # Access log
    │   └── auth.py          # Bearer token resolution
    ├── handlers/            # Endpoints
    │   ├── api.py           # /api/* JSON endpoints
    │   └── static.py        # Front-end files
    └── store/               # State
        ├── board.py         # BoardStore: users, ads, responses
        ├── sessions.py      # Session table
        ├── passwords.py     # bcrypt hashing
        ├── models.py        # Entities and ad views
        ├── errors.py        # StoreError hierarchy
        └── demo.py          # Demo seed data

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig
from .app import create_app

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
