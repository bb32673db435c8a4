"""Transports — the channels a protocol engine runs over."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tether.transport.base import Transport
from tether.transport.memory import MemoryTransport, memory_transport_pair
from tether.transport.stdio import ServerStdioTransport, StdioTransport
from tether.transport.websocket import WebSocketTransport

if TYPE_CHECKING:
    from tether.config import ServerRef


def create_transport(ref: ServerRef) -> Transport:
    """Build the appropriate client-side transport from a server reference."""
    if ref.transport == "stdio":
        if not ref.command:
            msg = "ServerRef with stdio transport must specify 'command'"
            raise ValueError(msg)
        env = dict(ref.env) if ref.env else None
        return StdioTransport(command=ref.command, env=env)
    if not ref.url:
        msg = "ServerRef with websocket transport must specify 'url'"
        raise ValueError(msg)
    return WebSocketTransport(url=ref.url)


__all__ = [
    "MemoryTransport",
    "ServerStdioTransport",
    "StdioTransport",
    "Transport",
    "WebSocketTransport",
    "create_transport",
    "memory_transport_pair",
]
