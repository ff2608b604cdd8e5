"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them to wire bytes.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  │    ────┬─── ─┬─ ─┬─                                            │ │
    │  │    Version  Code Phrase                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS (insertion order) ────────────────────────────────────┐ │
    │  │    Content-Type: text/plain\r\n                                │ │
    │  │    Content-Length: 3\r\n                                       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  \r\n                              ← Blank line ends the headers    │
    │                                                                      │
    │  ┌─ BODY (optional) ──────────────────────────────────────────────┐ │
    │  │    abc                                                          │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
NOTHING IS ADDED BEHIND YOUR BACK
=============================================================================

to_bytes() writes exactly the headers the handler chose, in the order it
chose them. There is no automatic Content-Length, Date or Server header:
a handler that sets a body and wants a length header sets both.

=============================================================================
IMMUTABLE BUILDER
=============================================================================

ResponseBuilder never changes in place. Every method hands back a new
builder, so a half-configured builder can be shared and branched safely:

    base = ResponseBuilder().status(HTTPStatus.CREATED)
    a = base.text("a").build()      # base is unchanged
    b = base.build()                # still no body

=============================================================================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import ClassVar, Optional, Tuple, Union

from .request import Protocol
from .status_codes import HTTPStatus


@dataclass(frozen=True)
class Header(ABC):
    """
    A response header the server knows how to render.

    Subclasses fix the header name; the instance carries the value.
    """
    name: ClassVar[str] = ""

    @abstractmethod
    def render(self) -> str:
        """Render as a "Name: value" line (without CRLF)."""


@dataclass(frozen=True)
class ContentType(Header):
    """Content-Type: <value>"""
    name: ClassVar[str] = "Content-Type"
    value: str = "text/plain"

    def render(self) -> str:
        return f"{self.name}: {self.value}"


@dataclass(frozen=True)
class ContentLength(Header):
    """Content-Length: <n>"""
    name: ClassVar[str] = "Content-Length"
    value: int = 0

    def render(self) -> str:
        return f"{self.name}: {int(self.value)}"


@dataclass(frozen=True)
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Handler returns          to_bytes()              Socket sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
            │                       │                        │
        HTTPResponse(            b"HTTP/1.1 200 OK\r\n   conn.send(
          status=OK,               Content-Type: ...\r\n     data
          headers=(...),           \r\n                    )
          body=b"abc"              abc"
        )

    =========================================================================

    Frozen, so serializing twice always gives the same bytes.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Tuple[Header, ...] = ()
    body: Optional[bytes] = None
    protocol: Protocol = Protocol.HTTP_1_1

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: PROTOCOL SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.protocol.value} {int(self.status)} {self.status.phrase}"

    def get_header(self, name: str) -> Optional[Header]:
        """Find the first header with this name (case-insensitive)."""
        name = name.lower()
        for header in self.headers:
            if header.name.lower() == name:
                return header
        return None

    def to_bytes(self) -> bytes:
        """
        Serialize the response to bytes for sending over socket.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 200 OK\r\n          ← Status line
            Content-Type: text/plain\r\n ← Headers, as given
            Content-Length: 3\r\n
            \r\n                         ← Empty line (separator)
            abc                          ← Body bytes, if any

        =====================================================================

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        lines = [self.status_line]
        lines.extend(header.render() for header in self.headers)

        # Empty line separates headers from body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"

        if self.body is None:
            return header_bytes
        return header_bytes + self.body


@dataclass(frozen=True)
class ResponseBuilder:
    """
    Immutable fluent builder for constructing HTTP responses.

    ==========================================================================
    USAGE EXAMPLES
    ==========================================================================

    # Empty 200
    response = ResponseBuilder().build()

    # Plain text with length
    response = ResponseBuilder().text("abc").build()

    # Raw file bytes
    response = ResponseBuilder().octet_stream(data).build()

    # Upload acknowledged
    response = ResponseBuilder().status(HTTPStatus.CREATED).build()

    ==========================================================================

    Every method returns a new builder; build() returns a new response.
    """

    _status: HTTPStatus = HTTPStatus.OK
    _headers: Tuple[Header, ...] = field(default=())
    _body: Optional[bytes] = None
    _protocol: Protocol = Protocol.HTTP_1_1

    # =========================================================================
    # STATUS / PROTOCOL
    # =========================================================================

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        """Set the HTTP status code."""
        return replace(self, _status=status)

    def protocol(self, protocol: Protocol) -> "ResponseBuilder":
        """Set the protocol version written in the status line."""
        return replace(self, _protocol=protocol)

    # =========================================================================
    # HEADERS
    # =========================================================================

    def header(self, header: Header) -> "ResponseBuilder":
        """
        Append a header. Headers go on the wire in the order added.

        Args:
            header: A Header instance (ContentType, ContentLength)
        """
        return replace(self, _headers=self._headers + (header,))

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Append a Content-Type header."""
        return self.header(ContentType(content_type))

    def content_length(self, length: int) -> "ResponseBuilder":
        """Append a Content-Length header."""
        return self.header(ContentLength(length))

    # =========================================================================
    # BODY
    # =========================================================================

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body without touching the headers.

        Strings are encoded as UTF-8.
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        return replace(self, _body=body)

    def text(self, text: str) -> "ResponseBuilder":
        """
        Set a plain text body with matching Content-Type and Content-Length.

        The length is the UTF-8 byte length, not the character count.
        """
        data = text.encode("utf-8")
        return (self
            .content_type("text/plain")
            .content_length(len(data))
            .body(data))

    def octet_stream(self, data: bytes) -> "ResponseBuilder":
        """Set a binary body as application/octet-stream with its length."""
        return (self
            .content_type("application/octet-stream")
            .content_length(len(data))
            .body(data))

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self) -> HTTPResponse:
        """Build the response. The builder stays usable afterwards."""
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
            protocol=self._protocol,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok() -> HTTPResponse:
    """200 OK with no headers and no body."""
    return ResponseBuilder().build()


def created() -> HTTPResponse:
    """201 Created with no headers and no body."""
    return ResponseBuilder().status(HTTPStatus.CREATED).build()


def not_found() -> HTTPResponse:
    """404 Not Found with no headers and no body."""
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).build()
