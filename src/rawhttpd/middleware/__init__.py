"""
Middleware that wraps the router.

    from rawhttpd.middleware import MiddlewarePipeline, LoggingMiddleware

    pipeline = MiddlewarePipeline().add(LoggingMiddleware())
    handler = pipeline.wrap(router.handle)
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog


__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
]
