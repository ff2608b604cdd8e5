"""
Default route table.

    GET  /               → handlers.index
    GET  /echo/:message  → handlers.echo
    GET  /user-agent     → handlers.user_agent
    GET  /files/:name    → FileHandler.download
    POST /files/:name    → FileHandler.upload

Anything else, PUT included, falls through to the router's 404.
"""

from .handlers import FileHandler, echo, index, user_agent
from .http.router import Router
from .storage import FileStore


def create_router(store: FileStore) -> Router:
    """
    Build the router with every built-in route registered.

    Args:
        store: File store backing the /files routes.

    Returns:
        A ready Router
    """
    router = Router()
    files = FileHandler(store)

    router.get("/")(index)
    router.get("/echo/:message")(echo)
    router.get("/user-agent")(user_agent)
    router.get("/files/:name", name="download")(files.download)
    router.post("/files/:name", name="upload")(files.upload)

    return router
