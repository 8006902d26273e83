"""
=============================================================================
CORE NETWORKING
=============================================================================

The transport layer of the server: everything between the listening
socket and the bytes of one request.

    ┌───────────────────────────────────────────────────────────────────┐
    │   Listener       bind, listen, accept loop, signal handling       │
    │        │                                                          │
    │        ▼                                                          │
    │   ThreadPool     bounded queue + worker threads                   │
    │        │                                                          │
    │        ▼                                                          │
    │   Connection     read one request, send one response, close       │
    └───────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .listener import Listener
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "Listener",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
