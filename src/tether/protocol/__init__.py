"""Protocol layer — JSON-RPC envelopes, codec and engine."""

from tether.protocol.codec import decode_message, encode_message
from tether.protocol.engine import ProtocolEngine, RequestOptions
from tether.protocol.models import (
    LATEST_PROTOCOL_VERSION,
    CallToolRequest,
    CallToolResponse,
    ClientCapabilities,
    Implementation,
    InitializeRequest,
    InitializeResponse,
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    ListToolsResponse,
    ServerCapabilities,
    TextContent,
    ToolDefinition,
)

__all__ = [
    "LATEST_PROTOCOL_VERSION",
    "CallToolRequest",
    "CallToolResponse",
    "ClientCapabilities",
    "Implementation",
    "InitializeRequest",
    "InitializeResponse",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "ListToolsResponse",
    "ProtocolEngine",
    "RequestOptions",
    "ServerCapabilities",
    "TextContent",
    "ToolDefinition",
    "decode_message",
    "encode_message",
]
