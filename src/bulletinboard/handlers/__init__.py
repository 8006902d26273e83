"""
=============================================================================
REQUEST HANDLERS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ api.py       BoardAPI: the /api/* JSON endpoints                    │
    │ static.py    StaticFileHandler: every other path, from a directory  │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .api import BoardAPI, endpoint_not_found, status_for
from .static import StaticFileHandler

__all__ = [
    "BoardAPI",
    "endpoint_not_found",
    "status_for",
    "StaticFileHandler",
]
