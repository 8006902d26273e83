"""
Unit tests for the bulletin board API, run through the full middleware and
routing stack without sockets.
"""

import json
from typing import Optional

import pytest

from bulletinboard import ServerConfig, create_app
from bulletinboard.handlers import status_for
from bulletinboard.http.request import HTTPRequest
from bulletinboard.http.response import HTTPResponse
from bulletinboard.store import (
    BoardStore,
    StoreError,
    ValidationError,
    SelfResponse,
    Unauthorized,
    Forbidden,
    NotFound,
    Conflict,
    AlreadyResponded,
)


class Client:
    """Calls the application the way a parsed request would reach it."""

    def __init__(self, store: BoardStore, config: ServerConfig):
        self.server = create_app(config, store)

    def call(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        token: Optional[str] = None,
    ) -> HTTPResponse:
        headers = {}
        if token:
            headers["authorization"] = f"Bearer {token}"
        request = HTTPRequest(
            method=method,
            path=path,
            headers=headers,
            form_params=dict(params or {}),
            client_address=("127.0.0.1", 50000),
        )
        return self.server.dispatch(request)

    def json(self, *args, **kwargs):
        response = self.call(*args, **kwargs)
        return response.status, json.loads(response.body)

    def register(self, name: str, email: str, password: str = "secret"):
        return self.json("POST", "/api/register", {"name": name, "email": email, "password": password})

    def login(self, email: str, password: str = "secret") -> str:
        status, body = self.json("POST", "/api/login", {"email": email, "password": password})
        assert status == 200, body
        return body["token"]

    def user(self, name: str, email: str) -> str:
        """Register and log in; returns the token."""
        self.register(name, email)
        return self.login(email)


@pytest.fixture
def client(store: BoardStore, config: ServerConfig) -> Client:
    return Client(store, config)


@pytest.fixture
def owner(client: Client) -> str:
    return client.user("Owner", "owner@example.com")


@pytest.fixture
def other(client: Client) -> str:
    return client.user("Other", "other@example.com")


@pytest.fixture
def ad_id(client: Client, owner: str) -> int:
    status, body = client.json(
        "POST", "/api/ads",
        {"title": "Bike", "description": "Red", "price": "40"},
        token=owner,
    )
    assert status == 200
    return body["ad"]["id"]


class TestStatusMapping:
    """Tests for status_for()."""

    @pytest.mark.parametrize("exc,status", [
        (ValidationError("x"), 400),
        (SelfResponse(), 400),
        (Unauthorized("x"), 401),
        (Forbidden("x"), 403),
        (NotFound(), 404),
        (Conflict("x"), 409),
        (AlreadyResponded(), 409),
    ])
    def test_mapping(self, exc: StoreError, status: int):
        assert status_for(exc) == status


class TestAccounts:
    """Tests for register, login, logout and session."""

    def test_register(self, client: Client):
        status, body = client.register("Ann", "ann@example.com")

        assert status == 200
        assert body == {"success": True, "message": "Registration complete"}

    def test_register_missing_field(self, client: Client):
        status, body = client.json("POST", "/api/register", {"name": "Ann", "email": "a@b.c"})

        assert status == 400
        assert body == {"error": "All fields are required"}

    def test_register_duplicate(self, client: Client):
        client.register("Ann", "ann@example.com")

        status, body = client.register("Ann", "ann@example.com")

        assert status == 409
        assert body == {"error": "Email already registered"}

    def test_register_from_query_string(self, client: Client):
        request = HTTPRequest(
            method="POST",
            path="/api/register",
            query_params={"name": "Q", "email": "q@example.com", "password": "pw"},
            client_address=("127.0.0.1", 1),
        )

        assert client.server.dispatch(request).status == 200

    def test_login(self, client: Client):
        client.register("Ann", "ann@example.com")

        status, body = client.json("POST", "/api/login", {"email": "ann@example.com", "password": "secret"})

        assert status == 200
        assert list(body) == ["token", "user"]
        assert len(body["token"]) == 32
        assert body["user"] == {"id": 1, "name": "Ann", "email": "ann@example.com"}

    def test_login_invalid(self, client: Client):
        client.register("Ann", "ann@example.com")

        status, body = client.json("POST", "/api/login", {"email": "ann@example.com", "password": "bad"})

        assert status == 401
        assert body == {"error": "Invalid credentials"}

    def test_login_missing_fields(self, client: Client):
        status, body = client.json("POST", "/api/login", {"email": "ann@example.com"})

        assert status == 400
        assert body == {"error": "Email and password are required"}

    def test_session_anonymous(self, client: Client):
        assert client.json("GET", "/api/session") == (200, {"authenticated": False})

    def test_session_authenticated(self, client: Client, owner: str):
        status, body = client.json("GET", "/api/session", token=owner)

        assert status == 200
        assert body == {
            "authenticated": True,
            "user": {"id": 1, "name": "Owner", "email": "owner@example.com"},
        }

    def test_logout(self, client: Client, owner: str):
        assert client.json("POST", "/api/logout", token=owner) == (200, {"success": True})

        assert client.json("GET", "/api/session", token=owner) == (200, {"authenticated": False})

    def test_logout_without_token(self, client: Client):
        assert client.json("POST", "/api/logout") == (200, {"success": True})

    def test_logout_twice(self, client: Client, owner: str):
        client.call("POST", "/api/logout", token=owner)

        assert client.json("POST", "/api/logout", token=owner) == (200, {"success": True})


class TestAds:
    """Tests for listing, creating and deleting ads."""

    def test_list_empty(self, client: Client):
        assert client.json("GET", "/api/ads") == (200, {"ads": []})

    def test_create(self, client: Client, owner: str):
        response = client.call(
            "POST", "/api/ads",
            {"title": "Bike", "description": "Red", "price": "40"},
            token=owner,
        )

        assert response.status == 200
        body = json.loads(response.body)
        assert body["success"] is True
        assert body["ad"]["title"] == "Bike"
        assert body["ad"]["mine"] is True
        assert body["ad"]["responsesCount"] == 0
        # money is written with two decimals
        assert b'"price":40.00' in response.body

    def test_create_requires_auth(self, client: Client):
        status, body = client.json("POST", "/api/ads", {"title": "Bike", "description": "Red"})

        assert status == 401
        assert body == {"error": "Authentication required"}

    def test_create_with_bad_token(self, client: Client):
        status, _ = client.json("POST", "/api/ads", {"title": "Bike", "description": "Red"}, token="bogus")

        assert status == 401

    def test_create_missing_title(self, client: Client, owner: str):
        status, body = client.json("POST", "/api/ads", {"description": "Red"}, token=owner)

        assert status == 400
        assert body == {"error": "Title and description are required"}

    def test_create_invalid_price(self, client: Client, owner: str):
        status, body = client.json(
            "POST", "/api/ads",
            {"title": "Bike", "description": "Red", "price": "cheap"},
            token=owner,
        )

        assert status == 400
        assert body == {"error": "Invalid price"}

    def test_create_price_with_huge_exponent(self, client: Client, owner: str):
        """Test that an exponent price is refused and never reaches the listing."""
        status, body = client.json(
            "POST", "/api/ads",
            {"title": "Bike", "description": "Red", "price": "1e20000000"},
            token=owner,
        )

        assert status == 400
        assert body == {"error": "Invalid price"}

        response = client.call("GET", "/api/ads")
        assert response.body == b'{"ads":[]}'

    def test_list_views_per_viewer(self, client: Client, owner: str, other: str, ad_id: int):
        _, anonymous = client.json("GET", "/api/ads")
        _, as_owner = client.json("GET", "/api/ads", token=owner)
        _, as_other = client.json("GET", "/api/ads", token=other)

        assert list(anonymous["ads"][0]) == [
            "id", "title", "description", "price", "ownerName",
            "createdAt", "mine", "hasResponded",
        ]
        assert anonymous["ads"][0]["ownerName"] == "Owner"
        assert as_owner["ads"][0]["mine"] is True
        assert "responsesCount" in as_owner["ads"][0]
        assert as_other["ads"][0]["mine"] is False
        assert "responsesCount" not in as_other["ads"][0]

    def test_delete(self, client: Client, owner: str, ad_id: int):
        assert client.json("DELETE", f"/api/ads/{ad_id}", token=owner) == (200, {"success": True})

        assert client.json("GET", "/api/ads") == (200, {"ads": []})

    def test_deleted_ad_responders_gone(self, client: Client, owner: str, other: str, ad_id: int):
        client.call("POST", f"/api/ads/{ad_id}/respond", token=other)
        client.call("DELETE", f"/api/ads/{ad_id}", token=owner)

        assert client.json("GET", f"/api/ads/{ad_id}/responders", token=owner) == (
            404, {"error": "Advertisement not found"},
        )

    @pytest.mark.parametrize("method,suffix", [
        ("DELETE", ""),
        ("POST", "/respond"),
        ("GET", "/responders"),
    ])
    def test_id_too_long_for_int(self, client: Client, owner: str, method: str, suffix: str):
        """Test that an id with thousands of digits is a missing ad."""
        path = "/api/ads/" + "1" * 5000 + suffix

        assert client.json(method, path, token=owner) == (
            404, {"error": "Advertisement not found"},
        )

    def test_delete_order_auth_first(self, client: Client):
        """Test that a missing ad still answers 401 without a token."""
        status, _ = client.json("DELETE", "/api/ads/999")

        assert status == 401

    def test_delete_missing(self, client: Client, owner: str):
        assert client.json("DELETE", "/api/ads/999", token=owner) == (
            404, {"error": "Advertisement not found"},
        )

    def test_delete_not_owner(self, client: Client, other: str, ad_id: int):
        assert client.json("DELETE", f"/api/ads/{ad_id}", token=other) == (
            403, {"error": "You can only delete your own advertisements"},
        )


class TestResponses:
    """Tests for responding and the response listings."""

    def test_respond(self, client: Client, other: str, ad_id: int):
        assert client.json("POST", f"/api/ads/{ad_id}/respond", token=other) == (200, {"success": True})

        _, body = client.json("GET", "/api/ads", token=other)
        assert body["ads"][0]["hasResponded"] is True

    def test_respond_requires_auth(self, client: Client, ad_id: int):
        assert client.json("POST", f"/api/ads/{ad_id}/respond")[0] == 401

    def test_respond_missing_ad(self, client: Client, other: str):
        assert client.json("POST", "/api/ads/77/respond", token=other)[0] == 404

    def test_respond_own_ad(self, client: Client, owner: str, ad_id: int):
        assert client.json("POST", f"/api/ads/{ad_id}/respond", token=owner) == (
            400, {"error": "You cannot respond to your own advertisement"},
        )

    def test_respond_twice(self, client: Client, other: str, ad_id: int):
        client.call("POST", f"/api/ads/{ad_id}/respond", token=other)

        assert client.json("POST", f"/api/ads/{ad_id}/respond", token=other) == (
            409, {"error": "You have already responded to this advertisement"},
        )

    def test_my_responses(self, client: Client, other: str, ad_id: int):
        client.call("POST", f"/api/ads/{ad_id}/respond", token=other)

        status, body = client.json("GET", "/api/ads/my-responses", token=other)

        assert status == 200
        assert [ad["id"] for ad in body["ads"]] == [ad_id]
        assert body["ads"][0]["hasResponded"] is True
        assert body["ads"][0]["mine"] is False

    def test_my_responses_requires_auth(self, client: Client):
        assert client.json("GET", "/api/ads/my-responses")[0] == 401

    def test_responders(self, client: Client, owner: str, other: str, ad_id: int):
        client.call("POST", f"/api/ads/{ad_id}/respond", token=other)

        status, body = client.json("GET", f"/api/ads/{ad_id}/responders", token=owner)

        assert status == 200
        assert body == {"responders": [{"id": 2, "name": "Other", "email": "other@example.com"}]}

        _, ads = client.json("GET", "/api/ads", token=owner)
        assert ads["ads"][0]["responsesCount"] == 1

    def test_responders_not_owner(self, client: Client, other: str, ad_id: int):
        assert client.json("GET", f"/api/ads/{ad_id}/responders", token=other) == (
            403, {"error": "Only the owner can view responders"},
        )

    def test_responders_missing(self, client: Client, owner: str):
        assert client.json("GET", "/api/ads/5/responders", token=owner)[0] == 404


class TestUnknownEndpoints:
    """Tests for /api/ paths that match no route."""

    @pytest.mark.parametrize("method,path", [
        ("GET", "/api/unknown"),
        ("GET", "/api/login"),
        ("PUT", "/api/ads"),
        ("GET", "/api/ads/"),
        ("DELETE", "/api/ads/abc"),
        ("GET", "/api/ads/1"),
        ("POST", "/api/ads/1/respond/"),
    ])
    def test_endpoint_not_found(self, client: Client, method: str, path: str):
        assert client.json(method, path) == (404, {"error": "Endpoint not found"})

    def test_non_api_path_without_static(self, client: Client):
        response = client.call("GET", "/index.html")

        assert response.status == 404
        assert response.body == b"Not Found"


class TestHandlerFailure:
    """Tests for unexpected handler exceptions."""

    def test_exception_becomes_500(self, client: Client):
        @client.server.get("/api/boom")
        def boom(request):
            raise RuntimeError("kaboom")

        status, body = client.json("GET", "/api/boom")

        assert status == 500
        assert body == {"error": "Internal Server Error"}
