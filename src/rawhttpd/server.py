"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    SocketServer ──accept──► one thread per connection
                                  │
                                  ▼
                    ┌──────── connection loop ────────┐
                    │  read  → parse → route → write  │
                    │    ▲                      │     │
                    │    └──────────────────────┘     │
                    └─────────────────────────────────┘
                        ends on EOF or socket error

=============================================================================
FAILURE HANDLING
=============================================================================

    ┌──────────────────────────┬──────────────────────────────────────────┐
    │ Failure                  │ Result                                   │
    ├──────────────────────────┼──────────────────────────────────────────┤
    │ HTTPParseError           │ 404 sent, keep reading                   │
    │ HandlerError             │ 404 sent, keep reading                   │
    │ recv()/send() error      │ connection closed, others unaffected     │
    │ bind() error             │ run() raises, process exits              │
    └──────────────────────────┴──────────────────────────────────────────┘

The peer only ever sees a well-formed response or a dropped connection.

=============================================================================
CONCURRENCY
=============================================================================

Every accepted connection gets its own thread for its whole lifetime. The
only thing threads share is the file store. With max_connections set, a
bounded semaphore caps how many run at once: the accept loop waits for a
free slot before starting the next thread.

=============================================================================
"""

import logging
import threading
from typing import Callable, Optional, Set

from .app import create_router
from .config import ServerConfig
from .core import Connection, SocketServer
from .http import (
    HTTPRequest, HTTPResponse, RequestParser, HTTPParseError,
    HandlerError, Router, not_found,
)
from .middleware import LoggingMiddleware, Middleware, MiddlewarePipeline
from .storage import FileStore


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Thread-per-connection HTTP/1.1 server.

    =========================================================================
    USAGE
    =========================================================================

        server = HTTPServer(ServerConfig(port=4221, files_dir="/tmp/data"))
        server.run()   # Blocks until Ctrl+C / SIGTERM

    Custom routing:

        router = Router()
        router.get("/")(lambda request: ok())
        HTTPServer(config, router=router).run()

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        router: Optional[Router] = None,
        store: Optional[FileStore] = None,
    ):
        """
        Initialize the HTTP server.

        Args:
            config: Server configuration. Defaults if not provided.
            router: Route table. Defaults to the built-in routes.
            store: File store. Defaults to config.files_dir.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self.store = store or FileStore(self.config.files_dir)

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()
        self._router = router or create_router(self.store)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))

        # Handler chain, rebuilt when middleware changes
        self._handler: Callable[[HTTPRequest], HTTPResponse] = self._middleware.wrap(self._router.handle)

        # Live connection threads, joined on shutdown
        self._threads: Set[threading.Thread] = set()
        self._threads_lock = threading.Lock()
        self._slots: Optional[threading.BoundedSemaphore] = (
            threading.BoundedSemaphore(self.config.max_connections)
            if self.config.max_connections
            else None
        )

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """
        Add middleware around the router.

        Returns:
            Self for method chaining.
        """
        self._middleware.add(middleware)
        self._handler = self._middleware.wrap(self._router.handle)
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self):
        """The bound (host, port); the real port once listening."""
        return self._socket_server.address

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Raises:
            OSError: If the listening socket cannot be bound.
        """
        self._setup_logging()

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        logger.info(f"Serving files from {self.store.root_dir}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Ask a running server to stop accepting. Safe from any thread."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is up."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("rawhttpd").setLevel(level)

    def _shutdown(self):
        """
        Wait for open connections, then return.

        A connection whose peer never closes keeps its thread alive; with
        shutdown_timeout unset, shutdown waits for it.
        """
        logger.info("Shutting down server...")

        with self._threads_lock:
            threads = list(self._threads)

        if threads:
            logger.info(f"Waiting for {len(threads)} open connection(s)")
        for thread in threads:
            thread.join(timeout=self.config.shutdown_timeout)
            if thread.is_alive():
                logger.warning(f"{thread.name} still running at shutdown")

        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Start a thread for a freshly accepted connection.

        Called on the accept loop. With a connection cap, this waits for a
        free slot (polling so shutdown is still noticed).
        """
        if self._slots is not None:
            while not self._slots.acquire(timeout=1.0):
                if not self._socket_server.is_running:
                    conn.close()
                    return

        thread = threading.Thread(
            target=self._run_connection,
            args=(conn,),
            name=f"Connection-{conn.id}",
            daemon=True,
        )
        with self._threads_lock:
            self._threads.add(thread)
        thread.start()

    def _run_connection(self, conn: Connection):
        """Thread body: serve the connection, then release its slot."""
        try:
            self.process_connection(conn)
        except Exception:
            logger.exception(f"[{conn.id}] Unexpected error in connection loop")
        finally:
            with self._threads_lock:
                self._threads.discard(threading.current_thread())
            if self._slots is not None:
                self._slots.release()

    def process_connection(self, conn: Connection):
        """
        Serve one connection until the peer closes it or I/O fails.

        =====================================================================
        CONNECTION PROCESSING LOOP
        =====================================================================

        1. Read up to buffer_size bytes      (None → stop)
        2. Parse, route, fall back to 404    (never stops the loop)
        3. Send the serialized response      (failure → stop)
        4. Repeat from step 1

        =====================================================================
        """
        with conn:
            while True:
                data = conn.read()
                if data is None:
                    break

                response = self.respond(data, conn_id=conn.id)

                if not conn.send(response.to_bytes()):
                    break

    def respond(self, data: bytes, conn_id: str = "-") -> HTTPResponse:
        """
        Turn the bytes of one read into a response.

        Parse and handler failures become 404 Not Found.
        """
        try:
            request = self._parser.parse(data)
        except HTTPParseError as e:
            logger.debug(f"[{conn_id}] Unparseable request ({type(e).__name__}): {e}")
            return not_found()

        try:
            return self._handler(request)
        except HandlerError as e:
            logger.warning(f"[{conn_id}] Handler error on {request.path}: {e} ({e.__cause__})")
            return not_found()


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Create a server with the built-in routes.

    Example:
        app = create_app(ServerConfig(port=4221))
        app.run()
    """
    return HTTPServer(config)
