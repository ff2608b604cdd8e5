"""
Request handlers.

    from rawhttpd.handlers import index, echo, user_agent, FileHandler
"""

from .basic import index, echo, user_agent
from .files import FileHandler


__all__ = ["index", "echo", "user_agent", "FileHandler"]
