"""
=============================================================================
BULLETIN BOARD API
=============================================================================

    ┌────────┬──────────────────────────────┬──────────────┬────────────────┐
    │ Method │ Path                         │ Auth         │ Store call     │
    ├────────┼──────────────────────────────┼──────────────┼────────────────┤
    │ POST   │ /api/register                │ -            │ register_user  │
    │ POST   │ /api/login                   │ -            │ login          │
    │ POST   │ /api/logout                  │ optional     │ destroy_session│
    │ GET    │ /api/session                 │ optional     │ get_user       │
    │ GET    │ /api/ads                     │ optional     │ list_ads       │
    │ GET    │ /api/ads/my-responses        │ required     │ list_my_resp.. │
    │ POST   │ /api/ads                     │ required     │ create_ad      │
    │ DELETE │ /api/ads/:id                 │ required     │ delete_ad      │
    │ POST   │ /api/ads/:id/respond         │ required     │ respond_to_ad  │
    │ GET    │ /api/ads/:id/responders      │ required     │ list_responders│
    │ *      │ /api/<anything else>         │ -            │ 404            │
    └────────┴──────────────────────────────┴──────────────┴────────────────┘

Parameters come from the urlencoded body or the query string
(request.get_param). Identity comes from AuthMiddleware (request.user_id).

=============================================================================
ERROR MAPPING
=============================================================================

This module is the only place store failures become HTTP statuses:

    ValidationError (and SelfResponse)   → 400
    Unauthorized                         → 401
    Forbidden                            → 403
    NotFound                             → 404
    Conflict (and AlreadyResponded)      → 409

Every error body is {"error": "<message>"}.

=============================================================================
"""

import functools
import logging
from typing import Callable

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok, error, unauthorized, not_found
from ..http.router import Router
from ..http.status_codes import HTTPStatus
from ..store import (
    BoardStore,
    StoreError,
    ValidationError,
    Unauthorized,
    Forbidden,
    NotFound,
    Conflict,
)


logger = logging.getLogger(__name__)


# Checked in order; subclasses map with their parent.
_ERROR_STATUS = [
    (ValidationError, HTTPStatus.BAD_REQUEST),
    (Unauthorized, HTTPStatus.UNAUTHORIZED),
    (Forbidden, HTTPStatus.FORBIDDEN),
    (NotFound, HTTPStatus.NOT_FOUND),
    (Conflict, HTTPStatus.CONFLICT),
]


def status_for(exc: StoreError) -> int:
    """HTTP status for a store failure."""
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return HTTPStatus.BAD_REQUEST


def store_errors(handler: Callable) -> Callable:
    """Turn a StoreError raised by the handler into an error response."""
    @functools.wraps(handler)
    def wrapper(self, request: HTTPRequest) -> HTTPResponse:
        try:
            return handler(self, request)
        except StoreError as e:
            logger.debug(f"{request.method} {request.path}: {type(e).__name__}: {e.message}")
            return error(status_for(e), e.message)
    return wrapper


def login_required(handler: Callable) -> Callable:
    """Answer 401 unless AuthMiddleware resolved a user."""
    @functools.wraps(handler)
    def wrapper(self, request: HTTPRequest) -> HTTPResponse:
        if request.user_id is None:
            return unauthorized("Authentication required")
        return handler(self, request)
    return wrapper


def ad_id(request: HTTPRequest) -> int:
    """
    The :id path parameter as an int.

    Raises:
        NotFound: If the digits are too long for int() to convert.
    """
    try:
        return int(request.path_params["id"])
    except ValueError:
        raise NotFound()


def endpoint_not_found(request: HTTPRequest) -> HTTPResponse:
    return not_found("Endpoint not found")


class BoardAPI:
    """
    The JSON API on top of a BoardStore.

        api = BoardAPI(store)
        api.register(router)
    """

    def __init__(self, store: BoardStore):
        self.store = store

    def register(self, router: Router) -> None:
        """Add every endpoint, plus the /api/ catch-all, to router."""
        router.add_route("/api/register", self.register_user, "POST")
        router.add_route("/api/login", self.login, "POST")
        router.add_route("/api/logout", self.logout, "POST")
        router.add_route("/api/session", self.session, "GET")
        router.add_route("/api/ads", self.list_ads, "GET")
        router.add_route("/api/ads/my-responses", self.my_responses, "GET")
        router.add_route("/api/ads", self.create_ad, "POST")
        router.add_route("/api/ads/:id<int>", self.delete_ad, "DELETE")
        router.add_route("/api/ads/:id<int>/respond", self.respond, "POST")
        router.add_route("/api/ads/:id<int>/responders", self.responders, "GET")

        router.fallback("/api/", endpoint_not_found)

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    @store_errors
    def register_user(self, request: HTTPRequest) -> HTTPResponse:
        self.store.register_user(
            request.get_param("name"),
            request.get_param("email"),
            request.get_param("password"),
        )
        return ok({"success": True, "message": "Registration complete"})

    @store_errors
    def login(self, request: HTTPRequest) -> HTTPResponse:
        session, user = self.store.login(
            request.get_param("email"),
            request.get_param("password"),
        )
        return ok({"token": session.token, "user": user.to_dict()})

    def logout(self, request: HTTPRequest) -> HTTPResponse:
        """Always succeeds; a missing or unknown token is not an error."""
        if request.session_token:
            self.store.destroy_session(request.session_token)
        return ok({"success": True})

    def session(self, request: HTTPRequest) -> HTTPResponse:
        user = self.store.get_user(request.user_id) if request.user_id is not None else None
        if user is None:
            return ok({"authenticated": False})
        return ok({"authenticated": True, "user": user.to_dict()})

    # =========================================================================
    # ADS
    # =========================================================================

    def list_ads(self, request: HTTPRequest) -> HTTPResponse:
        views = self.store.list_ads(request.user_id)
        return ok({"ads": [view.to_dict() for view in views]})

    @login_required
    @store_errors
    def create_ad(self, request: HTTPRequest) -> HTTPResponse:
        ad = self.store.create_ad(
            request.user_id,
            request.get_param("title"),
            request.get_param("description"),
            request.get_param("price"),
        )
        view = self.store.get_ad_view(ad.id, request.user_id)
        return ok({"success": True, "ad": view.to_dict()})

    @login_required
    @store_errors
    def delete_ad(self, request: HTTPRequest) -> HTTPResponse:
        self.store.delete_ad(request.user_id, ad_id(request))
        return ok({"success": True})

    # =========================================================================
    # RESPONSES
    # =========================================================================

    @login_required
    @store_errors
    def respond(self, request: HTTPRequest) -> HTTPResponse:
        self.store.respond_to_ad(request.user_id, ad_id(request))
        return ok({"success": True})

    @login_required
    def my_responses(self, request: HTTPRequest) -> HTTPResponse:
        views = self.store.list_my_responses(request.user_id)
        return ok({"ads": [view.to_dict() for view in views]})

    @login_required
    @store_errors
    def responders(self, request: HTTPRequest) -> HTTPResponse:
        users = self.store.list_responders(request.user_id, ad_id(request))
        return ok({"responders": [user.to_dict() for user in users]})
