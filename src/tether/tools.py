"""Tool registry — name-indexed tools behind ``tools/list`` and ``tools/call``.

A tool failing, or a tool not existing, is a domain-level outcome: the
registry answers with an ``isError`` response instead of raising, so the
surrounding protocol call still succeeds.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from tether.protocol.models import CallToolRequest, CallToolResponse, ToolDefinition
from tether.telemetry import ATTR_TOOL_IS_ERROR, ATTR_TOOL_NAME, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


@runtime_checkable
class Tool(Protocol):
    """A named, schema-described operation a server exposes."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    def call(
        self, arguments: dict[str, Any] | None
    ) -> CallToolResponse | Awaitable[CallToolResponse]: ...


class FunctionTool:
    """Adapts a plain function (or coroutine function) to :class:`Tool`.

    The function receives the call's arguments dict. Its return value is
    converted: a :class:`CallToolResponse` is passed through, a ``str``
    becomes one text item, and anything else is JSON-encoded into one.
    """

    def __init__(
        self,
        name: str,
        fn: Callable[[dict[str, Any]], Any],
        *,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
    ) -> None:
        self._name = name
        self._fn = fn
        self._description = description or inspect.getdoc(fn) or ""
        self._input_schema = input_schema or {"type": "object", "properties": {}}

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_schema(self) -> dict[str, Any]:
        return self._input_schema

    async def call(self, arguments: dict[str, Any] | None) -> CallToolResponse:
        result = self._fn(arguments or {})
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, CallToolResponse):
            return result
        if isinstance(result, str):
            return CallToolResponse.from_text(result)
        return CallToolResponse.from_text(json.dumps(result, default=str))


def as_definition(tool: Tool) -> ToolDefinition:
    return ToolDefinition(
        name=tool.name,
        description=tool.description or None,
        input_schema=tool.input_schema,
    )


class ToolRegistry:
    """Maps tool names to tools and dispatches calls.

    Registering a name that already exists replaces the earlier tool.
    ``list_tools`` keeps the order in which names were first registered.

    Usage::

        tools = ToolRegistry()

        @tools.tool("echo", description="Echo the arguments back")
        def echo(arguments):
            return arguments

        tools.list_tools()
        await tools.call_tool(CallToolRequest(name="echo", arguments={"x": 1}))
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def add_tool(self, tool: Tool) -> None:
        """Register *tool* under its name, replacing any previous one."""
        if tool.name in self._tools:
            logger.debug("Replacing tool %s", tool.name)
        self._tools[tool.name] = tool

    def remove_tool(self, name: str) -> bool:
        """Unregister *name*; return whether it was registered."""
        return self._tools.pop(name, None) is not None

    def tool(
        self,
        name: str | None = None,
        *,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
    ) -> Callable[[Callable[[dict[str, Any]], Any]], Callable[[dict[str, Any]], Any]]:
        """Decorator registering a function as a :class:`FunctionTool`."""

        def decorator(fn: Callable[[dict[str, Any]], Any]) -> Callable[[dict[str, Any]], Any]:
            self.add_tool(
                FunctionTool(
                    name or fn.__name__,
                    fn,
                    description=description,
                    input_schema=input_schema,
                )
            )
            return fn

        return decorator

    def list_tools(self) -> list[ToolDefinition]:
        """Return one definition per registered tool."""
        return [as_definition(tool) for tool in self._tools.values()]

    async def call_tool(self, request: CallToolRequest) -> CallToolResponse:
        """Invoke the named tool. Never raises for tool-level failures."""
        with _tracer.start_as_current_span("tether.tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, request.name)
            response = await self._dispatch(request)
            span.set_attribute(ATTR_TOOL_IS_ERROR, bool(response.is_error))
            return response

    async def _dispatch(self, request: CallToolRequest) -> CallToolResponse:
        tool = self._tools.get(request.name)
        if tool is None:
            return CallToolResponse.from_text(f"Tool {request.name} not found", is_error=True)

        try:
            result = tool.call(request.arguments)
            if inspect.isawaitable(result):
                result = await result
            if not isinstance(result, CallToolResponse):
                msg = f"returned {type(result).__name__}, expected CallToolResponse"
                raise TypeError(msg)
        except Exception as exc:
            logger.warning("Tool %s failed: %s", request.name, exc)
            return CallToolResponse.from_text(
                f"Error calling tool {request.name}: {exc}", is_error=True
            )
        return result
