"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The closed set of status codes this server ever puts on the wire.

=============================================================================
WHY A CLOSED ENUM?
=============================================================================

Every response leaves through exactly one status line:

    HTTP/1.1 404 Not Found\r\n
             ─── ─────────
              │      │
              │      └── Reason phrase (fixed per code)
              └────────── Status code

The server only needs three outcomes:

    ┌──────┬─────────────┬──────────────────────────────────────────────┐
    │ Code │ Phrase      │ Used for                                     │
    ├──────┼─────────────┼──────────────────────────────────────────────┤
    │ 200  │ OK          │ Index, echo, user-agent, file download       │
    │ 201  │ Created     │ File upload (POST /files/<name>)             │
    │ 404  │ Not Found   │ Unknown routes, missing files, every error   │
    └──────┴─────────────┴──────────────────────────────────────────────┘

Keeping the enum closed means the response serializer can never be handed
a code it has no phrase for, so serialization stays total.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes compare as integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200            # Request served
    CREATED = 201       # File stored
    NOT_FOUND = 404     # Route miss or fallback for any failure

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

        Returns:
            Human-readable description used in the status line
        """
        return _STATUS_PHRASES[self]

    @property
    def is_success(self) -> bool:
        """Check if this is a 2xx (success) status code."""
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        """Check if this is a 4xx or 5xx status code."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NOT_FOUND: "Not Found",
}
