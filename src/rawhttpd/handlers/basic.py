"""
Built-in handlers that need nothing but the request itself.

    GET /               → 200, empty
    GET /echo/<msg>     → 200, text/plain body <msg>
    GET /user-agent     → 200, text/plain body = User-Agent value
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, ok


def index(request: HTTPRequest) -> HTTPResponse:
    """Answer the root path with an empty 200."""
    return ok()


def echo(request: HTTPRequest, message: str) -> HTTPResponse:
    """
    Echo the last path segment back as plain text.

    The segment is used exactly as sent: "/echo/a%20b" echoes "a%20b".
    """
    return ResponseBuilder().text(message).build()


def user_agent(request: HTTPRequest) -> HTTPResponse:
    """
    Echo the client's User-Agent header back as plain text.

    A request without the header gets the plain default 200 with no body.
    """
    agent = request.user_agent
    if agent is None:
        return ok()
    return ResponseBuilder().text(agent).build()
