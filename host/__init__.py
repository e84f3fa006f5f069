"""Async table controller and WebSocket bridge for a browser client."""

from .server import HostServer
from .session import TableSession

__all__ = ["HostServer", "TableSession"]
