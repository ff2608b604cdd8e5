"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m rawhttpd --port 4000                            │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── RAWHTTPD_PORT=4000 python -m rawhttpd                     │
    │                                                                      │
    │   3. Defaults in this dataclass                                     │
    │      └── 127.0.0.1:4221, files from the current directory          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port, backlog, buffer_size, timeout

    CONNECTIONS
    - max_connections, shutdown_timeout

    FILE STORE
    - files_dir

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """The IP address to bind to."""

    port: int = 4221
    """
    The port number to listen on.
    0 lets the OS pick a free port (handy in tests).
    """

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 1024
    """
    Bytes read per recv() call.
    One read is one request: a request larger than this is cut short
    and parsed as whatever arrived.
    """

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None = block forever; a stalled peer then holds its thread until it
    closes the connection.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTION SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_connections: Optional[int] = None
    """
    Upper bound on connections handled at once.
    None = one thread per connection with no cap. When the cap is reached
    the accept loop waits for a connection to finish.
    """

    shutdown_timeout: Optional[float] = None
    """
    Seconds to wait for open connections on shutdown.
    None = wait until every connection closes.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILE STORE
    # ─────────────────────────────────────────────────────────────────────

    files_dir: str = "."
    """Root directory for GET/POST /files/<name>."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        RAWHTTPD_HOST             Server host (default: 127.0.0.1)
        RAWHTTPD_PORT             Server port (default: 4221)
        RAWHTTPD_DIRECTORY        File store root (default: .)
        RAWHTTPD_TIMEOUT          Socket timeout in seconds (default: none)
        RAWHTTPD_MAX_CONNECTIONS  Connection cap (default: none)
        RAWHTTPD_LOG_LEVEL        Logging level (default: INFO)
        RAWHTTPD_LOG_FORMAT       Access log format (default: text)

        =====================================================================
        """
        timeout = os.getenv("RAWHTTPD_TIMEOUT")
        max_connections = os.getenv("RAWHTTPD_MAX_CONNECTIONS")
        return cls(
            host=os.getenv("RAWHTTPD_HOST", "127.0.0.1"),
            port=int(os.getenv("RAWHTTPD_PORT", "4221")),
            files_dir=os.getenv("RAWHTTPD_DIRECTORY", "."),
            timeout=float(timeout) if timeout else None,
            max_connections=int(max_connections) if max_connections else None,
            log_level=os.getenv("RAWHTTPD_LOG_LEVEL", "INFO"),
            log_format=os.getenv("RAWHTTPD_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fails fast at startup instead of on the first request.

        Raises:
            ValueError: If any value is out of range.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_connections is not None and self.max_connections < 1:
            raise ValueError("max_connections must be >= 1")

        if self.shutdown_timeout is not None and self.shutdown_timeout < 0:
            raise ValueError("shutdown_timeout must be >= 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {self.log_format}")
