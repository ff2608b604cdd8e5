"""
Unit tests for Connection and the per-connection request loop.

Uses socket.socketpair() so the loop runs against a real socket without
a listening server.
"""

import logging
import socket
import threading

import pytest

from conftest import recv_response
from rawhttpd import HTTPServer, ServerConfig
from rawhttpd.core.connection import Connection, ConnectionState


@pytest.fixture
def pair():
    """(server side, client side) of a connected socket pair."""
    server_sock, client_sock = socket.socketpair()
    client_sock.settimeout(5.0)
    yield server_sock, client_sock
    client_sock.close()
    server_sock.close()


class TestConnection:
    """Tests for Connection class."""

    def test_read_returns_received_bytes(self, pair):
        server_sock, client_sock = pair
        conn = Connection(socket=server_sock, buffer_size=1024)

        client_sock.sendall(b"GET / HTTP/1.1\r\n\r\n")

        assert conn.read() == b"GET / HTTP/1.1\r\n\r\n"
        assert conn.state == ConnectionState.DISPATCHING

    def test_read_limited_to_buffer_size(self, pair):
        server_sock, client_sock = pair
        conn = Connection(socket=server_sock, buffer_size=4)

        client_sock.sendall(b"abcdefgh")

        assert conn.read() == b"abcd"

    def test_read_eof(self, pair):
        server_sock, client_sock = pair
        conn = Connection(socket=server_sock)

        client_sock.shutdown(socket.SHUT_WR)

        assert conn.read() is None

    def test_read_timeout(self, pair):
        server_sock, _ = pair
        conn = Connection(socket=server_sock, timeout=0.1)

        assert conn.read() is None

    def test_send(self, pair):
        server_sock, client_sock = pair
        conn = Connection(socket=server_sock)

        assert conn.send(b"hello") is True
        assert client_sock.recv(16) == b"hello"
        assert conn.requests_handled == 1

    def test_send_after_peer_closed(self, pair):
        server_sock, client_sock = pair
        conn = Connection(socket=server_sock)
        client_sock.close()

        # Large enough that the kernel reports the broken pipe
        assert conn.send(b"x" * (1 << 20)) is False

    def test_close_idempotent(self, pair):
        server_sock, _ = pair
        conn = Connection(socket=server_sock)

        conn.close()
        conn.close()

        assert conn.is_closed

    def test_close_logs_peer_and_age(self, pair, caplog):
        server_sock, _ = pair
        conn = Connection(socket=server_sock, address=("10.0.0.7", 5555))

        with caplog.at_level(logging.DEBUG, logger="rawhttpd.core.connection"):
            conn.close()

        message = caplog.records[-1].getMessage()
        assert "10.0.0.7" in message
        assert "closed after 0 requests" in message
        assert conn.age >= 0

    def test_context_manager_closes(self, pair):
        server_sock, _ = pair

        with Connection(socket=server_sock) as conn:
            assert not conn.is_closed

        assert conn.is_closed


class TestConnectionLoop:
    """Tests for HTTPServer.process_connection."""

    @pytest.fixture
    def served(self, pair, tmp_path):
        """Run the connection loop on the server side in a thread."""
        server_sock, client_sock = pair
        server = HTTPServer(ServerConfig(files_dir=str(tmp_path)))
        conn = Connection(socket=server_sock)

        thread = threading.Thread(target=server.process_connection, args=(conn,), daemon=True)
        thread.start()

        yield client_sock, conn, thread

        client_sock.close()
        thread.join(timeout=5.0)

    def test_multiple_requests_one_connection(self, served):
        """Requests on one connection are answered in order."""
        client_sock, _, _ = served

        client_sock.sendall(b"GET / HTTP/1.1\r\n\r\n")
        assert recv_response(client_sock) == b"HTTP/1.1 200 OK\r\n\r\n"

        client_sock.sendall(b"GET /echo/abc HTTP/1.1\r\n\r\n")
        assert recv_response(client_sock) == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"abc"
        )

    def test_garbage_gets_404_and_connection_stays_open(self, served):
        client_sock, conn, _ = served

        client_sock.sendall(b"\xff\xfe not http")
        assert recv_response(client_sock) == b"HTTP/1.1 404 Not Found\r\n\r\n"

        client_sock.sendall(b"BREW /pot HTTP/1.1\r\n\r\n")
        assert recv_response(client_sock) == b"HTTP/1.1 404 Not Found\r\n\r\n"

        client_sock.sendall(b"GET / HTTP/1.1\r\n\r\n")
        assert recv_response(client_sock) == b"HTTP/1.1 200 OK\r\n\r\n"
        assert not conn.is_closed

    def test_coalesced_requests_get_one_response(self, served):
        """A second request in the same read is the first one's body."""
        client_sock, conn, _ = served

        client_sock.sendall(b"GET / HTTP/1.1\r\n\r\nGET /echo/abc HTTP/1.1\r\n\r\n")
        assert recv_response(client_sock) == b"HTTP/1.1 200 OK\r\n\r\n"

        # Nothing else is queued for the client
        client_sock.settimeout(0.3)
        with pytest.raises(socket.timeout):
            client_sock.recv(1024)
        assert conn.requests_handled == 1

    def test_handler_error_gets_404(self, served):
        client_sock, _, _ = served

        client_sock.sendall(b"POST /files/.. HTTP/1.1\r\n\r\nx")
        assert recv_response(client_sock) == b"HTTP/1.1 404 Not Found\r\n\r\n"

    @pytest.mark.parametrize("request_bytes", [
        b"GET /files/a\x00b HTTP/1.1\r\n\r\n",
        b"POST /files/a\x00b HTTP/1.1\r\n\r\nx",
    ])
    def test_unusable_file_name_gets_404(self, served, request_bytes: bytes):
        """A name the filesystem rejects is answered, not dropped."""
        client_sock, conn, _ = served

        client_sock.sendall(request_bytes)
        assert recv_response(client_sock) == b"HTTP/1.1 404 Not Found\r\n\r\n"

        client_sock.sendall(b"GET / HTTP/1.1\r\n\r\n")
        assert recv_response(client_sock) == b"HTTP/1.1 200 OK\r\n\r\n"
        assert not conn.is_closed

    def test_loop_ends_on_peer_close(self, served):
        """Two requests, two ordered responses, then a clean close on EOF."""
        client_sock, conn, thread = served

        client_sock.sendall(b"GET / HTTP/1.1\r\n\r\n")
        assert recv_response(client_sock) == b"HTTP/1.1 200 OK\r\n\r\n"

        client_sock.sendall(b"GET /echo/second HTTP/1.1\r\n\r\n")
        assert recv_response(client_sock).endswith(b"Content-Length: 6\r\n\r\nsecond")

        client_sock.shutdown(socket.SHUT_WR)
        thread.join(timeout=5.0)

        assert not thread.is_alive()
        assert conn.is_closed
        assert conn.requests_handled == 2
        # Server side closed too: the client reads EOF
        assert client_sock.recv(1024) == b""
