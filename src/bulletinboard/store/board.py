"""
=============================================================================
BULLETIN BOARD STORE
=============================================================================

All users, ads, ad responses and sessions live in one BoardStore object,
guarded by one lock.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  BoardStore                                    guarded by _lock     │
    ├─────────────────────────────────────────────────────────────────────┤
    │  _users       {user_id: User}                                       │
    │  _emails      {email: user_id}                 exact-match index    │
    │  _ads         {ad_id: Advertisement}           creation order       │
    │  _responses   {ad_id: {user_id: responded_at}}                      │
    │  _sessions    SessionTable                                          │
    │  _next_user_id, _next_ad_id                    never reused         │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LOCKING RULES
=============================================================================

1. Every read or write of the fields above happens inside `with self._lock`.
2. The lock is held only for in-memory work: no socket I/O and no bcrypt
   while holding it.
3. Failures are raised as StoreError subclasses. The `with` block releases
   the lock as the exception leaves it.

Because every operation is one critical section, operations observe a
total order. Two concurrent create_ad() calls get distinct, increasing ids.

=============================================================================
"""

import logging
import threading
import time
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Optional, Tuple, Union

from .errors import (
    AlreadyResponded,
    Conflict,
    Forbidden,
    NotFound,
    SelfResponse,
    Unauthorized,
    ValidationError,
)
from .models import Advertisement, OwnerAdView, PublicAdView, Session, User
from .passwords import hash_password, verify_password
from .sessions import SessionTable


logger = logging.getLogger(__name__)


AdView = Union[PublicAdView, OwnerAdView]


# Prices are kept in cents; anything from MAX_PRICE up is refused.
CENT = Decimal("0.01")
MAX_PRICE = Decimal("1000000000000")


def parse_price(raw: str) -> Decimal:
    """
    Parse a price parameter into a Decimal rounded to cents.

        ""      → Decimal("0.00")
        "12.5"  → Decimal("12.50")
        "abc", "-1", "NaN", "Infinity", "1e20" → ValidationError("Invalid price")

    Exponent forms are accepted only below MAX_PRICE: "2e3" is 2000.00,
    "1e20000000" is refused.
    """
    raw = raw.strip()
    if not raw:
        return Decimal("0.00")
    try:
        price = Decimal(raw)
    except InvalidOperation:
        raise ValidationError("Invalid price")
    if not price.is_finite() or price < 0 or price >= MAX_PRICE:
        raise ValidationError("Invalid price")
    if price.is_zero():
        return Decimal("0.00")
    return price.quantize(CENT)


class BoardStore:
    """
    In-memory store for the bulletin board.

    Usage:
        store = BoardStore(session_ttl=3600)

        store.register_user("Ann", "ann@example.com", "secret")
        user = store.verify_login("ann@example.com", "secret")
        session = store.create_session(user.id)

        ad = store.create_ad(user.id, "Bike", "Red, 3 gears", "40")
        store.list_ads(viewer_id=None)
    """

    def __init__(
        self,
        session_ttl: Optional[float] = None,
        password_rounds: int = 12,
        clock: Callable[[], float] = time.time
    ):
        """
        Args:
            session_ttl: Session lifetime in seconds, None for no expiry.
            password_rounds: bcrypt cost factor for new passwords.
            clock: Time source for timestamps and session expiry.
        """
        self.password_rounds = password_rounds
        self._clock = clock

        self._lock = threading.Lock()
        self._users: Dict[int, User] = {}
        self._emails: Dict[str, int] = {}
        self._ads: Dict[int, Advertisement] = {}
        self._responses: Dict[int, Dict[int, float]] = {}
        self._sessions = SessionTable(ttl=session_ttl, clock=clock)
        self._next_user_id = 1
        self._next_ad_id = 1

        # Compared against when a login names an unknown email, so both
        # failures cost one bcrypt check.
        self._dummy_hash: Optional[str] = None

    # =========================================================================
    # USERS
    # =========================================================================

    def register_user(self, name: str, email: str, password: str) -> User:
        """
        Create a user.

        Raises:
            ValidationError: A field is empty.
            Conflict: The email is already registered.
        """
        if not name or not email or not password:
            raise ValidationError("All fields are required")

        # Fails fast without paying for a hash; re-checked under the lock.
        with self._lock:
            if email in self._emails:
                raise Conflict("Email already registered")

        password_hash = hash_password(password, self.password_rounds)

        with self._lock:
            if email in self._emails:
                raise Conflict("Email already registered")

            user = User(
                id=self._next_user_id,
                name=name,
                email=email,
                password_hash=password_hash,
            )
            self._next_user_id += 1
            self._users[user.id] = user
            self._emails[email] = user.id

        logger.info(f"Registered user {user.id} <{email}>")
        return user

    def verify_login(self, email: str, password: str) -> User:
        """
        Check credentials.

        Unknown email and wrong password fail with the same message.

        Raises:
            ValidationError: Email or password is empty.
            Unauthorized: The credentials do not match.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        with self._lock:
            user_id = self._emails.get(email)
            user = self._users.get(user_id) if user_id is not None else None

        if user is None:
            verify_password(password, self._get_dummy_hash())
            raise Unauthorized("Invalid credentials")

        if not verify_password(password, user.password_hash):
            raise Unauthorized("Invalid credentials")

        return user

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = hash_password("", self.password_rounds)
        return self._dummy_hash

    # =========================================================================
    # SESSIONS
    # =========================================================================

    def create_session(self, user_id: int) -> Session:
        with self._lock:
            return self._sessions.create(user_id)

    def resolve_session(self, token: str) -> Optional[int]:
        """
        The user behind a token, or None if unknown or expired.
        """
        if not token:
            return None
        with self._lock:
            return self._sessions.resolve(token)

    def destroy_session(self, token: str) -> bool:
        """
        End a session. Unknown tokens are ignored.

        Returns:
            Whether a session was removed.
        """
        with self._lock:
            return self._sessions.destroy(token)

    def login(self, email: str, password: str) -> Tuple[Session, User]:
        """verify_login() followed by create_session()."""
        user = self.verify_login(email, password)
        return self.create_session(user.id), user

    # =========================================================================
    # ADS
    # =========================================================================

    def list_ads(self, viewer_id: Optional[int]) -> List[AdView]:
        """
        Every ad in creation order, as seen by viewer_id (None = anonymous).
        """
        with self._lock:
            return [self._view(ad, viewer_id) for ad in self._ads.values()]

    def get_ad_view(self, ad_id: int, viewer_id: Optional[int]) -> AdView:
        """
        Raises:
            NotFound: No such ad.
        """
        with self._lock:
            ad = self._ads.get(ad_id)
            if ad is None:
                raise NotFound()
            return self._view(ad, viewer_id)

    def create_ad(
        self,
        owner_id: int,
        title: str,
        description: str,
        price: str = ""
    ) -> Advertisement:
        """
        Create an ad owned by owner_id.

        Args:
            price: Raw price parameter; empty means 0.

        Raises:
            ValidationError: Empty title/description, or invalid price.
        """
        if not title or not description:
            raise ValidationError("Title and description are required")

        amount = parse_price(price)

        with self._lock:
            ad = Advertisement(
                id=self._next_ad_id,
                owner_id=owner_id,
                title=title,
                description=description,
                price=amount,
                created_at=int(self._clock()),
            )
            self._next_ad_id += 1
            self._ads[ad.id] = ad

        logger.info(f"User {owner_id} created ad {ad.id}")
        return ad

    def delete_ad(self, requester_id: int, ad_id: int) -> None:
        """
        Delete an ad and every response to it.

        Raises:
            NotFound: No such ad.
            Forbidden: requester_id does not own it.
        """
        with self._lock:
            ad = self._ads.get(ad_id)
            if ad is None:
                raise NotFound()
            if ad.owner_id != requester_id:
                raise Forbidden("You can only delete your own advertisements")

            del self._ads[ad_id]
            self._responses.pop(ad_id, None)

        logger.info(f"User {requester_id} deleted ad {ad_id}")

    # =========================================================================
    # RESPONSES
    # =========================================================================

    def respond_to_ad(self, requester_id: int, ad_id: int) -> None:
        """
        Record that requester_id is interested in ad_id.

        Raises:
            NotFound: No such ad.
            SelfResponse: requester_id owns the ad.
            AlreadyResponded: requester_id already responded.
        """
        with self._lock:
            ad = self._ads.get(ad_id)
            if ad is None:
                raise NotFound()
            if ad.owner_id == requester_id:
                raise SelfResponse()

            responders = self._responses.setdefault(ad_id, {})
            if requester_id in responders:
                raise AlreadyResponded()

            responders[requester_id] = self._clock()

    def list_my_responses(self, requester_id: int) -> List[AdView]:
        """
        Ads requester_id has responded to.

        The order follows when each ad first received a response, not when
        it was created; callers should not rely on it.
        """
        with self._lock:
            return [
                self._view(self._ads[ad_id], requester_id)
                for ad_id, responders in self._responses.items()
                if requester_id in responders and ad_id in self._ads
            ]

    def list_responders(self, requester_id: int, ad_id: int) -> List[User]:
        """
        Users who responded to ad_id, in response order.

        Raises:
            NotFound: No such ad.
            Forbidden: requester_id does not own it.
        """
        with self._lock:
            ad = self._ads.get(ad_id)
            if ad is None:
                raise NotFound()
            if ad.owner_id != requester_id:
                raise Forbidden("Only the owner can view responders")

            return [
                self._users[user_id]
                for user_id in self._responses.get(ad_id, {})
                if user_id in self._users
            ]

    def responded_at(self, ad_id: int, user_id: int) -> Optional[float]:
        """When user_id responded to ad_id, or None."""
        with self._lock:
            return self._responses.get(ad_id, {}).get(user_id)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _view(self, ad: Advertisement, viewer_id: Optional[int]) -> AdView:
        """Build the view of ad for viewer_id. Caller holds the lock."""
        owner = self._users.get(ad.owner_id)
        responders = self._responses.get(ad.id, {})

        fields = dict(
            id=ad.id,
            title=ad.title,
            description=ad.description,
            price=ad.price,
            owner_name=owner.name if owner else "",
            created_at=ad.created_at,
            mine=viewer_id is not None and ad.owner_id == viewer_id,
            has_responded=viewer_id is not None and viewer_id in responders,
        )

        if fields["mine"]:
            return OwnerAdView(responses_count=len(responders), **fields)
        return PublicAdView(**fields)

    @property
    def stats(self) -> Dict[str, int]:
        """Entity counts, logged at startup."""
        with self._lock:
            return {
                "users": len(self._users),
                "ads": len(self._ads),
                "responses": sum(len(r) for r in self._responses.values()),
                "sessions": len(self._sessions),
            }
