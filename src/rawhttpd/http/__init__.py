"""
HTTP protocol layer: request parsing, response building, routing.

Everything in this package is pure computation. Sockets live in
rawhttpd.core, files in rawhttpd.storage.

    from rawhttpd.http import parse_request, ResponseBuilder, Router

    request = parse_request(b"GET /echo/abc HTTP/1.1\\r\\n\\r\\n")
    response = ResponseBuilder().text("abc").build()
    data = response.to_bytes()
"""

from .status_codes import HTTPStatus
from .request import (
    HTTPRequest,
    RequestParser,
    Method,
    Protocol,
    HTTPParseError,
    InvalidRequestFormat,
    MethodParseError,
    ProtocolParseError,
    RequestEncodingError,
    parse_request,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    Header,
    ContentType,
    ContentLength,
    ok,
    created,
    not_found,
)
from .router import Router, Route, RouteMatch, HandlerError


__all__ = [
    # Status codes
    "HTTPStatus",
    # Request
    "HTTPRequest",
    "RequestParser",
    "Method",
    "Protocol",
    "HTTPParseError",
    "InvalidRequestFormat",
    "MethodParseError",
    "ProtocolParseError",
    "RequestEncodingError",
    "parse_request",
    # Response
    "HTTPResponse",
    "ResponseBuilder",
    "Header",
    "ContentType",
    "ContentLength",
    "ok",
    "created",
    "not_found",
    # Routing
    "Router",
    "Route",
    "RouteMatch",
    "HandlerError",
]
