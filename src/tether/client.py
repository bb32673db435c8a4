"""Client — the requesting side of a tether connection.

Wraps a :class:`~tether.protocol.engine.ProtocolEngine` with the initialize
handshake and typed helpers for ``tools/list`` and ``tools/call``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from tether.config import ProtocolConfig
from tether.errors import ProtocolVersionError, RpcError
from tether.protocol.engine import ProtocolEngine, RequestOptions
from tether.protocol.models import (
    CallToolRequest,
    CallToolResponse,
    ClientCapabilities,
    Implementation,
    InitializeRequest,
    InitializeResponse,
    ListToolsResponse,
    Params,
    ToolDefinition,
)

if TYPE_CHECKING:
    from tether.transport.base import Transport

logger = logging.getLogger(__name__)


class Client:
    """Async context manager that connects to a server.

    Usage::

        async with Client(StdioTransport("python -m my_server")) as client:
            await client.initialize(Implementation(name="me", version="1.0"))
            tools = await client.list_tools()
            result = await client.call_tool("echo", {"x": 1})

    Outside the context manager, run :meth:`start` in a task of your own.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        capabilities: ClientCapabilities | None = None,
        config: ProtocolConfig | None = None,
    ) -> None:
        self._config = config or ProtocolConfig()
        self._capabilities = capabilities or ClientCapabilities()
        self._protocol = ProtocolEngine(transport, request_timeout=self._config.request_timeout)
        self._listener: asyncio.Task[None] | None = None
        self.server_info: InitializeResponse | None = None

    @property
    def protocol(self) -> ProtocolEngine:
        return self._protocol

    async def __aenter__(self) -> Client:
        await self._protocol.transport.connect()
        self._listener = asyncio.create_task(self.start())
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    async def start(self) -> None:
        """Run the receive loop until the connection closes."""
        await self._protocol.listen()

    async def close(self) -> None:
        """Close the engine and its transport, then stop the receive loop."""
        await self._protocol.close()
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            except Exception as exc:
                logger.debug("Receive loop ended with error: %s", exc)
            self._listener = None

    async def initialize(self, client_info: Implementation) -> InitializeResponse:
        """Perform the initialize handshake.

        Raises
        ------
        ProtocolVersionError
            If the server answers with a different protocol version; the
            ``initialized`` notification is not sent in that case.
        """
        request = InitializeRequest(
            protocol_version=self._config.protocol_version,
            capabilities=self._capabilities,
            client_info=client_info,
        )
        raw = await self.request("initialize", request.to_wire())
        response = InitializeResponse.model_validate(raw)

        if response.protocol_version != self._config.protocol_version:
            raise ProtocolVersionError(self._config.protocol_version, response.protocol_version)

        logger.debug("Initialized with protocol version %s", response.protocol_version)
        await self._protocol.notify("notifications/initialized")
        self.server_info = response
        return response

    async def request(
        self,
        method: str,
        params: Params | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        """Send a request and return its result.

        Raises
        ------
        RpcError
            If the server answered with an error object.
        """
        response = await self._protocol.request(method, params, options)
        if response.error is not None:
            raise RpcError(response.error.code, response.error.message, response.error.data)
        return response.result

    async def notify(self, method: str, params: Params | None = None) -> None:
        await self._protocol.notify(method, params)

    async def ping(self, options: RequestOptions | None = None) -> None:
        await self.request("ping", options=options)

    async def list_tools(self, options: RequestOptions | None = None) -> list[ToolDefinition]:
        """Send ``tools/list`` and parse the definitions."""
        raw = await self.request("tools/list", options=options)
        return ListToolsResponse.model_validate(raw or {}).tools

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        options: RequestOptions | None = None,
    ) -> CallToolResponse:
        """Send ``tools/call``; tool-level failures come back as ``is_error``."""
        request = CallToolRequest(name=name, arguments=arguments)
        raw = await self.request("tools/call", request.to_wire(), options)
        return CallToolResponse.model_validate(raw)
