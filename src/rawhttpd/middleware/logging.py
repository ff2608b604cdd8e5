"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per routed request, with timing.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ GET /echo/abc HTTP/1.1 200 3 0.12ms                                 │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Method Path      Protocol Status Body-size Duration                 │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"method": "GET", "path": "/echo/abc", "protocol": "HTTP/1.1",      │
    │  "status_code": 200, "content_length": 3, "user_agent": "curl",     │
    │  "duration_ms": 0.12}                                               │
    └─────────────────────────────────────────────────────────────────────┘

Requests that never reach the router (parse failures) are logged by the
connection loop instead.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


# Namespaced so access logs can be routed separately:
#   logging.getLogger("rawhttpd.access").addHandler(file_handler)
logger = logging.getLogger("rawhttpd.access")


@dataclass
class RequestLog:
    """Structured log entry for one request/response cycle."""

    method: str
    path: str
    protocol: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "method": self.method,
            "path": self.path,
            "protocol": self.protocol,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
        }

    def to_text(self) -> str:
        """Format as a single human-readable line."""
        return (
            f"{self.method} {self.path} {self.protocol} "
            f"{self.status_code} {self.content_length} {self.duration_ms:.2f}ms"
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

        pipeline.add(LoggingMiddleware(log_format="text"))
        pipeline.add(LoggingMiddleware(log_format="json"))
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
        skip_paths: Optional[list] = None,
    ):
        """
        Initialize logging middleware.

        Args:
            log_format: "text" or "json"
            log_level: Level access lines are emitted at
            skip_paths: Exact paths that are never logged
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(
                f"Request failed: {request.method.value} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        if request.path in self.skip_paths:
            return response

        entry = RequestLog(
            method=request.method.value,
            path=request.path,
            protocol=request.protocol.value,
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body) if response.body is not None else 0,
            duration_ms=duration_ms,
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())

        return response
