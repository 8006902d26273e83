"""
Bearer-token sessions.

    login  ──► create(user_id)   → Session(token="9f86d0...", user_id=3)
    request ─► resolve(token)    → 3, or None when unknown or expired
    logout ──► destroy(token)

A user may hold any number of sessions at once. With a ttl, a token older
than ttl seconds resolves to None and is dropped on the spot. Tokens
that are never presented again are swept out by create(), at most once
per ttl.

SessionTable does no locking of its own; BoardStore calls it with the
store lock held.
"""

import secrets
import time
from typing import Callable, Dict, Optional

from .models import Session


TOKEN_BYTES = 16  # 32 hex characters


class SessionTable:

    def __init__(
        self,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Args:
            ttl: Session lifetime in seconds, None for no expiry.
            clock: Time source, replaceable in tests.
        """
        self.ttl = ttl
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, user_id: int) -> Session:
        """
        Issue a new token. At most once per ttl this also sweeps out
        expired sessions whose tokens were never presented again.
        """
        now = self._clock()
        if self.ttl is not None and now - self._last_sweep >= self.ttl:
            self.purge_expired()
            self._last_sweep = now

        token = secrets.token_hex(TOKEN_BYTES)
        while token in self._sessions:
            token = secrets.token_hex(TOKEN_BYTES)

        session = Session(token=token, user_id=user_id, issued_at=now)
        self._sessions[token] = session
        return session

    def resolve(self, token: str) -> Optional[int]:
        session = self._sessions.get(token)
        if session is None:
            return None
        if self._expired(session, self._clock()):
            del self._sessions[token]
            return None
        return session.user_id

    def destroy(self, token: str) -> bool:
        """Returns whether the token existed."""
        return self._sessions.pop(token, None) is not None

    def purge_expired(self) -> int:
        """Drop every expired session. Returns how many were dropped."""
        if self.ttl is None:
            return 0
        now = self._clock()
        expired = [t for t, s in self._sessions.items() if self._expired(s, now)]
        for token in expired:
            del self._sessions[token]
        return len(expired)

    def _expired(self, session: Session, now: float) -> bool:
        return self.ttl is not None and now - session.issued_at >= self.ttl
