"""Protocol models — JSON-RPC 2.0 envelopes and MCP payloads.

Implements the message format used by the Model Context Protocol for the
initialize handshake, tool discovery (``tools/list``) and execution
(``tools/call``).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

LATEST_PROTOCOL_VERSION = "2024-11-05"
JSONRPC_VERSION = "2.0"

RequestId = Union[int, str]
Params = Union[dict[str, Any], list[Any]]

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    jsonrpc: str = JSONRPC_VERSION
    id: RequestId
    method: str
    params: Params | None = None


class JsonRpcNotification(BaseModel):
    """A JSON-RPC 2.0 notification: a request without an id."""

    jsonrpc: str = JSONRPC_VERSION
    method: str
    params: Params | None = None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message.

    Exactly one of ``result`` and ``error`` is present. ``result`` may be
    ``None`` on a successful response, so presence is checked on the raw
    input rather than on the parsed values.
    """

    jsonrpc: str = JSONRPC_VERSION
    id: RequestId | None
    result: Any = None
    error: JsonRpcError | None = None

    @model_validator(mode="before")
    @classmethod
    def _exactly_one_outcome(cls, data: Any) -> Any:
        if isinstance(data, dict):
            has_result = "result" in data
            has_error = "error" in data and data["error"] is not None
            if has_result == has_error:
                msg = "response must carry exactly one of 'result' or 'error'"
                raise ValueError(msg)
        return data

    @classmethod
    def success(cls, request_id: RequestId, result: Any) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: RequestId | None, error: JsonRpcError) -> JsonRpcResponse:
        return cls(id=request_id, error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None


Message = Union[JsonRpcRequest, JsonRpcNotification, JsonRpcResponse]

# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    """Base for payloads whose wire names are camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump using wire (alias) names, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Implementation(_CamelModel):
    """Name and version of a client or server implementation."""

    name: str
    version: str


class ClientCapabilities(_CamelModel):
    experimental: dict[str, Any] | None = None
    sampling: dict[str, Any] | None = None
    roots: dict[str, Any] | None = None


class ServerCapabilities(_CamelModel):
    experimental: dict[str, Any] | None = None
    logging: dict[str, Any] | None = None
    prompts: dict[str, Any] | None = None
    resources: dict[str, Any] | None = None
    tools: dict[str, Any] | None = None


class InitializeRequest(_CamelModel):
    protocol_version: str = Field(alias="protocolVersion")
    capabilities: ClientCapabilities = Field(default_factory=ClientCapabilities)
    client_info: Implementation = Field(alias="clientInfo")


class InitializeResponse(_CamelModel):
    protocol_version: str = Field(alias="protocolVersion")
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
    server_info: Implementation = Field(alias="serverInfo")


class ToolDefinition(_CamelModel):
    """A tool definition as returned by ``tools/list``."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )


class ListToolsResponse(_CamelModel):
    tools: list[ToolDefinition] = Field(default_factory=list)
    next_cursor: str | None = Field(default=None, alias="nextCursor")


class TextContent(_CamelModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(_CamelModel):
    type: Literal["image"] = "image"
    data: str
    mime_type: str = Field(alias="mimeType")


class ResourceContents(_CamelModel):
    uri: str
    mime_type: str | None = Field(default=None, alias="mimeType")
    text: str | None = None
    blob: str | None = None


class EmbeddedResource(_CamelModel):
    type: Literal["resource"] = "resource"
    resource: ResourceContents


ToolResponseContent = Annotated[
    Union[TextContent, ImageContent, EmbeddedResource],
    Field(discriminator="type"),
]


class CallToolRequest(_CamelModel):
    name: str
    arguments: dict[str, Any] | None = None
    meta: dict[str, Any] | None = Field(default=None, alias="_meta")


class CallToolResponse(_CamelModel):
    content: list[ToolResponseContent] = Field(default_factory=list)
    is_error: bool | None = Field(default=None, alias="isError")
    meta: dict[str, Any] | None = Field(default=None, alias="_meta")

    @classmethod
    def from_text(cls, text: str, *, is_error: bool | None = None) -> CallToolResponse:
        """Build a response holding a single text item."""
        return cls(content=[TextContent(text=text)], is_error=is_error)

    def text(self) -> str:
        """Join the text items of the response."""
        return "\n".join(item.text for item in self.content if isinstance(item, TextContent))
