"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rawhttpd import HTTPServer, ServerConfig
from rawhttpd.storage import FileStore


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /user-agent HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"User-Agent: foobar/1.2.3\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a body."""
    body = b"12345"
    return (
        b"POST /files/number HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"Content-Type: application/octet-stream\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
    ) + body


@pytest.fixture
def file_store(tmp_path: Path) -> FileStore:
    """File store rooted in a fresh temporary directory."""
    return FileStore(tmp_path)


@pytest.fixture
def config(tmp_path: Path) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        shutdown_timeout=5.0,
        files_dir=str(tmp_path),
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class LiveServer:
    """Runs an HTTPServer in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def connect(self) -> socket.socket:
        """Open a client socket to the server."""
        sock = socket.create_connection(('127.0.0.1', self.port), timeout=5.0)
        return sock

    def request(self, data: bytes) -> bytes:
        """Send one request on a new connection and read the response."""
        with self.connect() as sock:
            sock.sendall(data)
            return recv_response(sock)

    def stop(self):
        """Stop the server."""
        self.server.stop()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


def recv_response(sock: socket.socket, settle: float = 0.2) -> bytes:
    """
    Read one response.

    Reads until the headers are in and Content-Length bytes of body have
    arrived, or nothing more shows up for `settle` seconds.
    """
    data = b""
    deadline = time.monotonic() + 5.0
    while time.monotonic() < deadline:
        head, sep, body = data.partition(b"\r\n\r\n")
        if sep:
            length = 0
            for line in head.split(b"\r\n")[1:]:
                name, _, value = line.partition(b":")
                if name.strip().lower() == b"content-length":
                    length = int(value.strip())
            if len(body) >= length:
                return data
        sock.settimeout(settle if sep else 5.0)
        try:
            chunk = sock.recv(4096)
        except socket.timeout:
            return data
        if not chunk:
            return data
        data += chunk
    return data


@pytest.fixture
def live_server(config: ServerConfig) -> Generator[LiveServer, None, None]:
    """A running server with the built-in routes, files under tmp_path."""
    server = LiveServer(HTTPServer(config))
    server.start()

    yield server

    server.stop()
