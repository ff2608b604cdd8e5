"""
=============================================================================
RAWHTTPD - A Minimal HTTP/1.1 Server on Raw Sockets
=============================================================================

A small HTTP/1.1 server written directly against the socket API. It
answers a fixed set of routes and keeps each connection open for as many
request/response cycles as the client sends.

=============================================================================
ROUTES
=============================================================================

    GET  /               200, empty body
    GET  /echo/<msg>     200, text/plain body <msg>
    GET  /user-agent     200, text/plain body = User-Agent header
    GET  /files/<name>   200, application/octet-stream file contents
    POST /files/<name>   201, request body written to <name>
    anything else        404, empty body

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    rawhttpd/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m rawhttpd)
    ├── server.py            # HTTPServer: accept → thread → connection loop
    ├── config.py            # ServerConfig dataclass
    ├── app.py               # Default route table
    ├── storage.py           # FileStore confined to one directory
    ├── core/
    │   ├── socket_server.py # Listening socket and accept loop
    │   └── connection.py    # Per-client read/send/close
    ├── http/
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response builder and serialization
    │   ├── router.py        # (method, path) → handler
    │   └── status_codes.py  # 200 / 201 / 404
    ├── middleware/
    │   ├── base.py          # Middleware pipeline
    │   └── logging.py       # Access logging
    └── handlers/
        ├── basic.py         # /, /echo, /user-agent
        └── files.py         # /files download and upload

=============================================================================
QUICK START
=============================================================================

    from rawhttpd import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=4221, files_dir="/tmp/data"))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, create_app
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
