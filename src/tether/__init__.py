"""tether — bidirectional JSON-RPC engine with an MCP-style tool server."""

from __future__ import annotations

from tether.client import Client
from tether.config import ProtocolConfig, ServerRef
from tether.errors import (
    ConnectionClosedError,
    ProtocolError,
    ProtocolVersionError,
    RequestTimeoutError,
    RpcError,
    TetherError,
    TransportError,
)
from tether.protocol.engine import ProtocolEngine, RequestOptions
from tether.server import Server
from tether.tools import FunctionTool, Tool, ToolRegistry

__version__ = "0.1.0"

__all__ = [
    "Client",
    "ConnectionClosedError",
    "FunctionTool",
    "ProtocolConfig",
    "ProtocolEngine",
    "ProtocolError",
    "ProtocolVersionError",
    "RequestOptions",
    "RequestTimeoutError",
    "RpcError",
    "Server",
    "ServerRef",
    "TetherError",
    "Tool",
    "ToolRegistry",
    "TransportError",
    "__version__",
]
