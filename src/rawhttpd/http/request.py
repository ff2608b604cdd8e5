"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes of one socket read into a typed HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ START LINE ───────────────────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    GET /echo/abc HTTP/1.1\r\n                                  │ │
    │  │    ─┬─ ────┬──── ───┬────                                      │ │
    │  │     │      │        │                                           │ │
    │  │   Method  Path   Protocol                                      │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Host: localhost:4221\r\n                                    │ │
    │  │    User-Agent: curl/8.0\r\n                                    │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  \r\n                              ← Blank line ends the headers    │
    │                                                                      │
    │  ┌─ BODY (optional) ──────────────────────────────────────────────┐ │
    │  │    hello                                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING RULES
=============================================================================

1. The whole buffer must be valid UTF-8. We never fall back to a partial
   parse of the bytes that did decode.

2. Lines end at "\n"; one "\r" in front of it is dropped. Both
   "GET / HTTP/1.1\n" and "GET / HTTP/1.1\r\n" are accepted.

3. The start line is split on runs of whitespace. Three tokens are
   required; anything after the third is ignored.

       "get /  HTTP/1.1 extra"  →  GET, "/", HTTP/1.1

4. Methods are matched case-insensitively, protocol versions exactly.

5. Header lines are kept verbatim, up to the first blank line. If the
   blank line never shows up inside the buffer, the request is rejected.

6. Whatever follows the blank line is the body. Nothing at all means
   "no body" (None), not an empty body.

=============================================================================
ERRORS
=============================================================================

    HTTPParseError
     ├── InvalidRequestFormat   missing start line, < 3 tokens,
     │                          no header terminator
     ├── MethodParseError       verb outside {GET, PUT, POST}
     ├── ProtocolParseError     version outside {HTTP/1.1, HTTP/1.0}
     └── RequestEncodingError   bytes are not UTF-8

The connection loop catches HTTPParseError as a whole and answers with a
404 instead of dropping the connection.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Subclasses name the part of the request that was rejected so callers
    (and tests) can tell a bad verb from a truncated header block.
    """


class InvalidRequestFormat(HTTPParseError):
    """Start line missing or short, or header block never terminated."""


class MethodParseError(HTTPParseError):
    """The request method is not one we recognize."""


class ProtocolParseError(HTTPParseError):
    """The protocol version is not HTTP/1.1 or HTTP/1.0."""


class RequestEncodingError(HTTPParseError):
    """The request bytes are not valid UTF-8."""


class Method(Enum):
    """
    Supported request methods.

    Extending the server to more verbs is a matter of adding members here;
    an unknown verb is always an error, never a silent default.
    """
    GET = "GET"
    PUT = "PUT"
    POST = "POST"

    @classmethod
    def parse(cls, token: str) -> "Method":
        """
        Parse a method token, ignoring case.

        Raises:
            MethodParseError: If the token is not a known method.
        """
        try:
            return cls(token.upper())
        except ValueError:
            raise MethodParseError(f"Failed to parse method: {token!r}") from None


class Protocol(Enum):
    """Supported protocol versions. Matched case-sensitively."""
    HTTP_1_1 = "HTTP/1.1"
    HTTP_1_0 = "HTTP/1.0"

    @classmethod
    def parse(cls, token: str) -> "Protocol":
        """
        Parse a protocol token exactly as written.

        Raises:
            ProtocolParseError: If the token is not a supported version.
        """
        try:
            return cls(token)
        except ValueError:
            raise ProtocolParseError(f"Failed to parse HTTP protocol: {token!r}") from None


@dataclass(frozen=True)
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    =========================================================================
    ATTRIBUTES EXPLAINED
    =========================================================================

        method:     Method enum member (GET, PUT, POST)

        path:       Request target exactly as sent. Not percent-decoded,
                    not split on "?". Routes match on it and file routes
                    use its last component as a store-relative name.

        protocol:   Protocol enum member (HTTP/1.1 or HTTP/1.0)

        headers:    Raw header lines in wire order, untouched.
                    ("User-Agent: curl/8.0", "Host: localhost", ...)

        fields:     Header lines folded once into an ordered mapping of
                    lowercase name → trimmed value. Built at parse time so
                    lookups don't rescan every line.

        body:       Bytes following the blank line, or None when nothing
                    followed it.

    =========================================================================

    Requests are frozen: a handler can read one but never half-build or
    modify one.
    """

    method: Method
    path: str
    protocol: Protocol = Protocol.HTTP_1_1
    headers: Tuple[str, ...] = ()
    body: Optional[bytes] = None
    fields: Dict[str, str] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        # Requests built directly (tests, handlers) get fields from headers
        if self.headers and not self.fields:
            object.__setattr__(self, "fields", fold_header_lines(self.headers))

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a header value (case-insensitive lookup).

        Args:
            name: Header name (any case)
            default: Value to return if header not found

        Returns:
            Trimmed header value of the first matching line, or default

        Example:
            request.get_header("user-agent")  # "curl/8.0"
            request.get_header("USER-AGENT")  # "curl/8.0"
        """
        return self.fields.get(name.lower(), default)

    @property
    def user_agent(self) -> Optional[str]:
        """Get the User-Agent header value, if the client sent one."""
        return self.get_header("user-agent")

    @property
    def has_body(self) -> bool:
        """Check whether anything followed the blank line."""
        return self.body is not None


def fold_header_lines(lines: Tuple[str, ...]) -> Dict[str, str]:
    """
    Fold raw header lines into an ordered name → value mapping.

    The name is everything before the first colon, lowercased; the value is
    everything after it, trimmed. Lines without a colon stay opaque and are
    skipped here. When a name repeats, the first line wins, the same answer
    a top-down scan of the raw lines would give.

    Example:
        ("User-Agent:  curl ", "X-Flag", "user-agent: other")
        → {"user-agent": "curl"}
    """
    fields: Dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep:
            continue
        fields.setdefault(name.lower(), value.strip())
    return fields


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER ARCHITECTURE
    ==========================================================================

        Raw bytes from one recv()
              │
              ▼
        ┌───────────────────────────────────────────────────────────────────┐
        │  REQUEST PARSER                                                   │
        ├───────────────────────────────────────────────────────────────────┤
        │                                                                    │
        │  1. Decode UTF-8 ───────────────────────────────────────────────►│
        │     │  Invalid? → RequestEncodingError                           │
        │     ▼                                                             │
        │  2. Start line ─────────────────────────────────────────────────►│
        │     │  METHOD  PATH  PROTOCOL  [ignored...]                      │
        │     │  Missing / short? → InvalidRequestFormat                   │
        │     │  Bad verb? → MethodParseError                              │
        │     │  Bad version? → ProtocolParseError                         │
        │     ▼                                                             │
        │  3. Header lines until blank line ──────────────────────────────►│
        │     │  No blank line? → InvalidRequestFormat                     │
        │     ▼                                                             │
        │  4. Remainder → body (None if empty) ───────────────────────────►│
        │                                                                    │
        └───────────────────────────────────────────────────────────────────┘
              │
              ▼
        HTTPRequest (frozen)

    ==========================================================================

    The parser is stateless; one instance can be shared by every
    connection thread.
    """

    def parse(self, data: bytes) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: The bytes actually read from the socket.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            HTTPParseError: If the request is malformed (see subclasses).
        """
        # =====================================================================
        # STEP 1: Decode the whole buffer as UTF-8
        # =====================================================================
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RequestEncodingError(f"Request is not valid UTF-8: {e}") from e

        lines = _iter_lines(text)

        # =====================================================================
        # STEP 2: Parse the start line
        # =====================================================================
        try:
            start_line, _ = next(lines)
        except StopIteration:
            raise InvalidRequestFormat("Invalid request format: empty request") from None

        method, path, protocol = self._parse_start_line(start_line)

        # =====================================================================
        # STEP 3: Collect header lines up to the blank line
        # =====================================================================
        headers = []
        body_start = None
        for line, end in lines:
            if not line:
                body_start = end
                break
            headers.append(line)

        if body_start is None:
            raise InvalidRequestFormat("Invalid request format: no header terminator")

        # =====================================================================
        # STEP 4: Everything after the blank line is the body
        # =====================================================================
        # The text came from valid UTF-8, so re-encoding gives back the
        # exact bytes that followed the terminator.
        remainder = text[body_start:]
        body = remainder.encode("utf-8") if remainder else None

        header_lines = tuple(headers)
        return HTTPRequest(
            method=method,
            path=path,
            protocol=protocol,
            headers=header_lines,
            body=body,
            fields=fold_header_lines(header_lines),
        )

    def _parse_start_line(self, line: str) -> Tuple[Method, str, Protocol]:
        """
        Parse the request start line.

            "GET /echo/abc HTTP/1.1"
             ─┬─ ────┬──── ───┬────
              │      │        │
            Method  Path   Protocol

        Returns:
            Tuple of (method, path, protocol)
        """
        tokens = line.split()
        if len(tokens) < 3:
            raise InvalidRequestFormat(f"Invalid request format: start line {line!r}")

        method = Method.parse(tokens[0])
        path = tokens[1]
        protocol = Protocol.parse(tokens[2])
        return method, path, protocol


def _iter_lines(text: str) -> Iterator[Tuple[str, int]]:
    """
    Yield (line, end_offset) pairs for each line of text.

    end_offset is the index just past the line's terminator, so the caller
    can slice out whatever follows a given line untouched. A final "\n"
    does not produce an extra empty line.
    """
    pos = 0
    size = len(text)
    while pos < size:
        newline = text.find("\n", pos)
        if newline == -1:
            line, end = text[pos:], size
        else:
            line, end = text[pos:newline], newline + 1
        if line.endswith("\r"):
            line = line[:-1]
        yield line, end
        pos = end


# Shared parser for the convenience function below
_default_parser = RequestParser()


def parse_request(data: bytes) -> HTTPRequest:
    """
    Convenience function to parse a request.

    Args:
        data: Raw HTTP request bytes.

    Returns:
        Parsed HTTPRequest.

    Raises:
        HTTPParseError: If the request is malformed.
    """
    return _default_parser.parse(data)
