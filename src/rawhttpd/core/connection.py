"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the small API the connection loop
needs: read a chunk, send a response, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        send("GET / HTTP/1.1\r\n\r\n")
        send("GET /echo/x HTTP/1.1\r\n\r\n")

    Server might receive ANY of these:
        recv() → both requests at once
        recv() → "GET / HTT"             (partial)
        recv() → the first, then the second

This server keeps it simple: ONE recv() is treated as ONE request. Only
the bytes that recv() actually returned are parsed, never the whole
fixed-size buffer. That is the accepted best-effort behaviour, and it has
two consequences:

    SPLIT      A request split across reads fails to parse and gets a
               404; the connection stays open and the next read starts
               fresh.

    COALESCED  Two requests sent without waiting for the first response
               can arrive in one read. Everything after the first blank
               line is body, so the second request becomes the first
               one's body and only ONE response goes back.

Clients must wait for each response before sending the next request.

=============================================================================
CONNECTION STATES
=============================================================================

    ┌─────────┐   bytes   ┌─────────────┐  response  ┌─────────┐
    │ READING │ ────────► │ DISPATCHING │ ─────────► │ WRITING │
    └─────────┘           └─────────────┘            └─────────┘
         ▲                                                │
         └──────────────────── sent ok ───────────────────┘

    READING  ── 0 bytes / error / timeout ──► CLOSED
    WRITING  ── send error ─────────────────► CLOSED

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"                  # Just accepted, nothing read yet
    READING = "reading"          # Blocked in recv()
    DISPATCHING = "dispatching"  # Parsing and routing the bytes read
    WRITING = "writing"          # Sending the response
    CLOSED = "closed"            # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
        requests_handled: Completed request/response cycles.
    """

    socket: socket.socket
    address: tuple = ("", 0)

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 1024
    timeout: Optional[float] = None

    def __post_init__(self):
        # settimeout(None) puts the socket in plain blocking mode
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read(self) -> Optional[bytes]:
        """
        Read whatever the peer has sent, up to buffer_size bytes.

        Returns:
            The bytes actually received, or None if the peer closed the
            connection, the read timed out, or the read failed. In every
            None case the caller should stop serving this connection.
        """
        self.state = ConnectionState.READING

        try:
            data = self.socket.recv(self.buffer_size)
        except socket.timeout:
            logger.warning(f"[{self.id}] Read timed out after {self.timeout}s")
            return None
        except OSError as e:
            logger.warning(f"[{self.id}] Read failed: {e}")
            return None

        if not data:
            logger.debug(f"[{self.id}] Peer closed connection")
            return None

        self.state = ConnectionState.DISPATCHING
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> bool:
        """
        Send response data to the client.

        Uses sendall() so partial writes are retried until every byte is
        out or the socket fails.

        Returns:
            True if send succeeded, False if the connection is unusable.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

        self.requests_handled += 1
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        shutdown() first so the peer sees FIN even if another reference to
        the socket is still open, then release the descriptor. Safe to call
        more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection from {self.client_ip} closed after "
            f"{self.requests_handled} requests ({self.age:.2f}s)"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
