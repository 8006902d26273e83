"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) pairs to handler functions.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   DELETE /api/ads/42                                                │
    │        │                                                            │
    │        ▼                                                            │
    │   1. Registered routes, first match wins                            │
    │        POST   /api/register                                         │
    │        GET    /api/ads/my-responses                                 │
    │        DELETE /api/ads/:id<int>     ← match, path_params={"id":"42"}│
    │        ...                                                          │
    │        │ no route                                                   │
    │        ▼                                                            │
    │   2. Prefix fallbacks, first matching prefix wins                   │
    │        "/api/"  → {"error":"Endpoint not found"}                    │
    │        │ no prefix                                                  │
    │        ▼                                                            │
    │   3. Default handler (static files, else text 404)                  │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PATH PATTERNS
=============================================================================

1. STATIC: exact match
       /api/ads            matches /api/ads only (no trailing-slash variant)

2. PARAMETER (:name): one path segment
       /files/:name        matches /files/a.txt → {"name": "a.txt"}

3. DIGIT PARAMETER (:name<int>): one segment of decimal digits only
       /api/ads/:id<int>   matches /api/ads/42  → {"id": "42"}
                           no match /api/ads/abc, /api/ads/, /api/ads/-1

   A non-numeric id is therefore "no route" rather than an error.

Routes compile to anchored regexes with named groups:

    /api/ads/:id<int>/respond  →  ^/api/ads/(?P<id>[0-9]+)/respond$

There is no 405: a path registered only for POST answers a GET with
whatever the fallbacks say.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, List
import re

from .request import HTTPRequest
from .response import HTTPResponse, text_not_found


Handler = Callable[[HTTPRequest], HTTPResponse]

_PARAM_RE = re.compile(r"^:(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?:<(?P<kind>int)>)?$")

_PARAM_REGEX = {
    None: "[^/]+",
    "int": "[0-9]+",
}


@dataclass
class Route:
    """
    A registered route.

        Route(
            path="/api/ads/:id<int>",
            method="DELETE",
            handler=delete_ad,
            name="delete_ad",
        )
    """

    path: str
    method: str
    handler: Handler
    name: Optional[str] = None

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    """
    Result of a successful route match.

    Example:
        Pattern: /api/ads/:id<int>/responders
        Path:    /api/ads/7/responders
        Result:  RouteMatch(route=<Route>, params={"id": "7"})
    """
    route: Route
    params: Dict[str, str]


class Router:
    """
    HTTP request router with typed path parameters.

    Routes are registered with decorators:

        router = Router()

        @router.get("/api/ads")
        def list_ads(request):
            ...

        @router.delete("/api/ads/:id<int>")
        def delete_ad(request):
            ad_id = int(request.path_params["id"])
            ...

        router.fallback("/api/", api_not_found)
        router.default = serve_static
    """

    def __init__(self):
        self._routes: List[Route] = []
        self._fallbacks: List[tuple[str, Handler]] = []
        self.default: Optional[Handler] = None

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: str,
        name: Optional[str] = None
    ) -> Route:
        """
        Register a route.

        Args:
            path: URL pattern (e.g., /api/ads/:id<int>/respond)
            handler: Function taking a request and returning a response
            method: HTTP method, stored upper-cased; requests must match it exactly
            name: Optional route name (shows up in debug listings)

        Returns:
            The registered Route object
        """
        pattern, param_names = self._compile_pattern(path)

        route = Route(
            path=path,
            method=method.upper(),
            handler=handler,
            name=name or getattr(handler, "__name__", None),
            _pattern=pattern,
            _param_names=param_names,
        )

        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> tuple[re.Pattern, List[str]]:
        """
        Compile a path pattern into a regex.

            "/api/ads/:id<int>/respond"
                → ["", "api", "ads", ":id<int>", "respond"]
                → ^/api/ads/(?P<id>[0-9]+)/respond$

        Raises:
            ValueError: For a ':' segment that is not a valid parameter.
        """
        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith(":"):
                param = _PARAM_RE.match(segment)
                if not param:
                    raise ValueError(f"Invalid path parameter {segment!r} in {path!r}")
                name = param.group("name")
                param_names.append(name)
                regex_parts.append(f"(?P<{name}>{_PARAM_REGEX[param.group('kind')]})")
            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")

        regex_parts.append("$")
        return re.compile("".join(regex_parts)), param_names

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the first route matching method and path exactly.

        The method is compared as sent: "get" does not match a GET route.

        Returns:
            RouteMatch if found, None otherwise
        """
        for route in self._routes:
            if route.method != method:
                continue

            if route._pattern:
                found = route._pattern.match(path)
                if found:
                    return RouteMatch(route=route, params=found.groupdict())

        return None

    def fallback(self, prefix: str, handler: Handler) -> None:
        """
        Answer unmatched paths starting with prefix using handler.

        Fallbacks are tried in registration order, before the default.
        """
        self._fallbacks.append((prefix, handler))

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to its handler.

        1. Matching route → its handler, with path_params filled in
        2. Matching fallback prefix → the fallback handler
        3. The default handler, if set
        4. Plain-text 404
        """
        found = self.match(request.method, request.path)

        if found:
            request.path_params = found.params
            return found.route.handler(request)

        for prefix, handler in self._fallbacks:
            if request.path.startswith(prefix):
                return handler(request)

        if self.default is not None:
            return self.default(request)

        return text_not_found()

    def route(self, path: str, method: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """
        Decorator for registering routes.

        Usage:
            @router.route("/api/ads", method="GET")
            def list_ads(request):
                ...
        """
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", name)

    def delete(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "DELETE", name)

    def routes(self) -> List[Route]:
        """All registered routes, in match order."""
        return list(self._routes)

    def describe(self) -> List[str]:
        """
        One line per route, for the startup log.

            ["POST     /api/register", "GET      /api/ads", ...]
        """
        return [f"{route.method:8} {route.path}" for route in self._routes]
