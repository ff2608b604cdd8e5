"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) pairs to handler functions.

Supports:
- Static paths: /, /user-agent
- Last-segment parameters: /echo/:message, /files/:name
- Method-based routing: GET, PUT, POST

=============================================================================
ROUTING FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Incoming Request                                                   │
    │   GET /echo/abc                                                      │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  ROUTER                                                      │   │
    │   │  ┌────────────────────────────────────────────────────────┐ │   │
    │   │  │ GET  /               → index                           │ │   │
    │   │  │ GET  /echo/:message  → echo            ← MATCH!        │ │   │
    │   │  │ GET  /user-agent     → user_agent                      │ │   │
    │   │  │ GET  /files/:name    → files.download                  │ │   │
    │   │  │ POST /files/:name    → files.upload                    │ │   │
    │   │  └────────────────────────────────────────────────────────┘ │   │
    │   │  Extracted: params = {"message": "abc"}                     │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   echo(request, message="abc")                                       │
    │                                                                      │
    │   No match (any method, any path) → 404 Not Found, no body          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
MATCHING IS PLAIN STRING SPLITTING
=============================================================================

Request paths are not filesystem paths. Patterns and paths are both split
on "/" and compared segment by segment; nothing is normalized:

    Pattern /echo/:message
        /echo/abc      → {"message": "abc"}
        /echo/         → no match (empty last segment)
        /echo/a/b      → no match (parent is /echo/a)
        /echo          → no match

A ":param" segment matches exactly one non-empty segment.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
import logging

from .request import HTTPRequest, Method
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)


# Handler: takes the request plus the extracted path parameters
Handler = Callable[..., HTTPResponse]


class HandlerError(Exception):
    """
    Raised by a handler when it cannot produce a response.

    Wraps the underlying cause (usually a storage failure). The connection
    loop turns it into a 404 rather than closing the connection.
    """


@dataclass
class Route:
    """
    Represents a registered route.

        Route(
            path="/files/:name",
            method=Method.GET,
            handler=download,
            _segments=("files", ":name"),
        )
    """

    path: str
    method: Method
    handler: Handler
    name: Optional[str] = None

    # Internal: pattern split on "/" (leading empty segment dropped)
    _segments: Tuple[str, ...] = field(default=(), repr=False)

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """
        Match a request path against this route.

        Returns:
            Extracted parameters, or None if the path doesn't match
        """
        if not path.startswith("/"):
            return None

        segments = path[1:].split("/")
        if len(segments) != len(self._segments):
            return None

        params: Dict[str, str] = {}
        for pattern, segment in zip(self._segments, segments):
            if pattern.startswith(":"):
                if not segment:
                    return None
                params[pattern[1:]] = segment
            elif pattern != segment:
                return None
        return params


@dataclass
class RouteMatch:
    """
    Result of a successful route match.

    Example:
        Pattern: /echo/:message
        Path:    /echo/abc
        Result:  RouteMatch(route=<Route>, params={"message": "abc"})
    """
    route: Route
    params: Dict[str, str]


class Router:
    """
    HTTP request router.

    ==========================================================================
    DECORATOR-BASED API
    ==========================================================================

        router = Router()

        @router.get("/echo/:message")
        def echo(request, message):
            return ResponseBuilder().text(message).build()

        @router.post("/files/:name")
        def upload(request, name):
            ...

    ==========================================================================

    First registered, first matched. Anything that doesn't match, whatever
    the method, gets a bare 404.
    """

    def __init__(self):
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Method,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a route.

        Args:
            path: URL pattern (e.g., /files/:name)
            handler: Called as handler(request, **params)
            method: Method the route answers to
            name: Optional route name (shows up in logs)

        Returns:
            The registered Route object
        """
        if not path.startswith("/"):
            raise ValueError(f"Route path must start with '/': {path!r}")

        route = Route(
            path=path,
            method=method,
            handler=handler,
            name=name or getattr(handler, "__name__", None),
            _segments=tuple(path[1:].split("/")),
        )
        self._routes.append(route)
        return route

    def route(self, path: str, method: Method, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """
        Decorator for registering routes.

        Usage:
            @router.route("/", Method.GET)
            def index(request):
                return ok()
        """
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler  # Return handler unchanged (allows stacking decorators)
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(path, Method.GET, name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route(path, Method.POST, name)

    def put(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a PUT route."""
        return self.route(path, Method.PUT, name)

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, method: Method, path: str) -> Optional[RouteMatch]:
        """
        Find a matching route for the given method and path.

        Returns:
            RouteMatch if found, None otherwise
        """
        for route in self._routes:
            if route.method is not method:
                continue
            params = route.match(path)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to the appropriate handler.

        Returns:
            The handler's response, or 404 if nothing matched

        Raises:
            HandlerError: Propagated unchanged from the handler.
        """
        match = self.match(request.method, request.path)

        if match is None:
            logger.debug(f"No route for {request.method.value} {request.path}")
            return not_found()

        return match.route.handler(request, **match.params)

    def routes(self) -> List[Route]:
        """Get all registered routes, in match order."""
        return list(self._routes)
