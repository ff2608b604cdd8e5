"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

Middleware wraps the router so cross-cutting work (access logging) happens
around every routed request without touching the handlers.

=============================================================================
PIPELINE ARCHITECTURE
=============================================================================

    pipeline.add(LoggingMiddleware())    # First added = outermost
    handler = pipeline.wrap(router.handle)

        ┌─────────────────────────────────────────────────────────┐
        │  LoggingMiddleware                                      │
        │  ┌───────────────────────────────────────────────────┐  │
        │  │                                                   │  │
        │  │         FINAL HANDLER (router.handle)             │  │
        │  │                                                   │  │
        │  └───────────────────────────────────────────────────┘  │
        └─────────────────────────────────────────────────────────┘

Request flows inward, response flows outward. Exceptions (HandlerError)
flow outward too; middleware must re-raise what it doesn't handle.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next handler in the chain: the next middleware or the router itself
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

        class MyMiddleware(Middleware):
            def __call__(self, request, next):
                response = next(request)   # <-- continue the chain
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming HTTP request
            next: The next handler in the chain

        Returns:
            HTTP response (from next() or short-circuited)
        """

    @property
    def name(self) -> str:
        """Get the middleware name for logging."""
        return self.__class__.__name__


class MiddlewarePipeline:
    """Chains middleware together around a final handler."""

    def __init__(self):
        self._middleware: List[Middleware] = []

    def __len__(self) -> int:
        return len(self._middleware)

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """
        Add middleware to the pipeline (first added = outermost).

        Returns:
            Self for method chaining
        """
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        """Add several middleware at once."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Wrap a handler with all middleware in the pipeline.

        Given [MW1, MW2] and handler, the result calls
        MW1 → MW2 → handler. We wrap in reverse so the first-added
        middleware ends up outermost.
        """
        wrapped = handler
        for middleware in reversed(self._middleware):
            wrapped = _bind(middleware, wrapped)
        return wrapped


def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
    """Close over one middleware and its successor."""
    def handler(request: HTTPRequest) -> HTTPResponse:
        return middleware(request, next_handler)
    return handler
