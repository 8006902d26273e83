"""
=============================================================================
BOARD ENTITIES
=============================================================================

    User ──< owns >── Advertisement ──< responded to by >── User
     │
     └──< holds >── Session (bearer token)

Entities are immutable once stored. The views at the bottom of this module
are what the API serializes; which one an ad becomes depends on who asks:

    ┌──────────────────┬──────────────────────────────────────────────────┐
    │ viewer           │ view                                             │
    ├──────────────────┼──────────────────────────────────────────────────┤
    │ the ad's owner   │ OwnerAdView  (public fields + responsesCount)    │
    │ anyone else      │ PublicAdView (no response count at all)          │
    └──────────────────┴──────────────────────────────────────────────────┘

=============================================================================
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict


@dataclass(frozen=True)
class User:
    id: int
    name: str
    email: str
    password_hash: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Public identity; the password hash never leaves the store."""
        return {"id": self.id, "name": self.name, "email": self.email}


@dataclass(frozen=True)
class Advertisement:
    """
    A classified ad.

    Attributes:
        id: Sequential, never reused.
        owner_id: User who created it.
        price: Non-negative, finite.
        created_at: Seconds since the epoch.
    """

    id: int
    owner_id: int
    title: str
    description: str
    price: Decimal
    created_at: int


@dataclass(frozen=True)
class Session:
    token: str
    user_id: int
    issued_at: float


@dataclass(frozen=True)
class PublicAdView:
    """An ad as seen by someone who does not own it (or by nobody)."""

    id: int
    title: str
    description: str
    price: Decimal
    owner_name: str
    created_at: int
    mine: bool
    has_responded: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "ownerName": self.owner_name,
            "createdAt": self.created_at,
            "mine": self.mine,
            "hasResponded": self.has_responded,
        }


@dataclass(frozen=True)
class OwnerAdView(PublicAdView):
    """An ad as seen by its owner: the public view plus the response count."""

    responses_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        has_responded = data.pop("hasResponded")
        data["responsesCount"] = self.responses_count
        data["hasResponded"] = has_responded
        return data
