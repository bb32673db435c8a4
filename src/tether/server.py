"""Server — the serving side of a tether connection.

Wires a :class:`~tether.tools.ToolRegistry` into a protocol engine's
handler table and answers the initialize handshake.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from tether.config import ProtocolConfig
from tether.errors import InvalidParamsError
from tether.protocol.engine import ProtocolEngine
from tether.protocol.models import (
    CallToolRequest,
    CallToolResponse,
    Implementation,
    InitializeRequest,
    InitializeResponse,
    ListToolsResponse,
    ServerCapabilities,
)
from tether.tools import ToolRegistry

if TYPE_CHECKING:
    from tether.transport.base import Transport

logger = logging.getLogger(__name__)

_DEFAULT_SERVER_INFO = Implementation(name="tether", version="0.1.0")


def _validation_details(exc: ValidationError) -> list[dict[str, Any]]:
    return [{"loc": [str(part) for part in err["loc"]], "msg": err["msg"]} for err in exc.errors()]


class Server:
    """Serves a tool registry over one transport.

    Usage::

        tools = ToolRegistry()
        tools.add_tool(FunctionTool("echo", lambda args: args))

        server = Server(ServerStdioTransport(), tools=tools)
        await server.listen()
    """

    def __init__(
        self,
        transport: Transport,
        *,
        tools: ToolRegistry | None = None,
        capabilities: ServerCapabilities | None = None,
        server_info: Implementation | None = None,
        config: ProtocolConfig | None = None,
    ) -> None:
        self._config = config or ProtocolConfig()
        self._tools = tools if tools is not None else ToolRegistry()
        self._capabilities = capabilities or ServerCapabilities(tools={})
        self._server_info = server_info or _DEFAULT_SERVER_INFO
        self._protocol = ProtocolEngine(transport, request_timeout=self._config.request_timeout)
        self.client_info: Implementation | None = None
        self.initialized = False

        self._protocol.set_request_handler("initialize", self._handle_initialize)
        self._protocol.set_request_handler("ping", self._handle_ping)
        self._protocol.set_request_handler("tools/list", self._handle_list_tools)
        self._protocol.set_request_handler("tools/call", self._handle_call_tool)
        self._protocol.set_notification_handler(
            "notifications/initialized", self._handle_initialized
        )

    @property
    def protocol(self) -> ProtocolEngine:
        return self._protocol

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    @property
    def capabilities(self) -> ServerCapabilities:
        return self._capabilities

    async def listen(self) -> None:
        """Serve until the transport closes."""
        await self._protocol.listen()

    async def close(self) -> None:
        await self._protocol.close()

    def _handle_initialize(self, params: Any) -> InitializeResponse:
        try:
            request = InitializeRequest.model_validate(params or {})
        except ValidationError as exc:
            raise InvalidParamsError("initialize", _validation_details(exc)) from exc

        self.client_info = request.client_info
        if request.protocol_version != self._config.protocol_version:
            logger.warning(
                "Client %s requested protocol %s; answering with %s",
                request.client_info.name,
                request.protocol_version,
                self._config.protocol_version,
            )
        return InitializeResponse(
            protocol_version=self._config.protocol_version,
            capabilities=self._capabilities,
            server_info=self._server_info,
        )

    def _handle_initialized(self, _params: Any) -> None:
        self.initialized = True
        logger.debug("Client reported initialized")

    def _handle_ping(self, _params: Any) -> dict[str, Any]:
        return {}

    def _handle_list_tools(self, _params: Any) -> ListToolsResponse:
        return ListToolsResponse(tools=self._tools.list_tools())

    async def _handle_call_tool(self, params: Any) -> CallToolResponse:
        try:
            request = CallToolRequest.model_validate(params or {})
        except ValidationError as exc:
            raise InvalidParamsError("tools/call", _validation_details(exc)) from exc
        return await self._tools.call_tool(request)
