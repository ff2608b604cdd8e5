"""
Networking core: the listening socket and per-client connections.
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer


__all__ = ["Connection", "ConnectionState", "SocketServer"]
