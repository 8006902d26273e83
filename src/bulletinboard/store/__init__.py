"""
In-memory state of the bulletin board: users, ads, ad responses and
sessions, all behind one lock (see board.py).
"""

from .board import BoardStore, parse_price
from .demo import seed_demo_data
from .errors import (
    StoreError,
    ValidationError,
    SelfResponse,
    Unauthorized,
    Forbidden,
    NotFound,
    Conflict,
    AlreadyResponded,
)
from .models import User, Advertisement, Session, PublicAdView, OwnerAdView
from .passwords import hash_password, verify_password
from .sessions import SessionTable

__all__ = [
    "BoardStore",
    "parse_price",
    "seed_demo_data",
    "StoreError",
    "ValidationError",
    "SelfResponse",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "Conflict",
    "AlreadyResponded",
    "User",
    "Advertisement",
    "Session",
    "PublicAdView",
    "OwnerAdView",
    "hash_password",
    "verify_password",
    "SessionTable",
]
