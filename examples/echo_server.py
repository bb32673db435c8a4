"""Minimal stdio tool server.

Run it through the CLI::

    tether tools list "python examples/echo_server.py"
    tether tools call "python examples/echo_server.py" add --arguments '{"a": 2, "b": 3}'
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

from tether import Server, ToolRegistry
from tether.protocol.models import Implementation
from tether.transport import ServerStdioTransport

tools = ToolRegistry()


@tools.tool(
    "echo",
    description="Return the arguments unchanged.",
    input_schema={"type": "object", "additionalProperties": True},
)
def echo(arguments: dict[str, Any]) -> dict[str, Any]:
    return arguments


@tools.tool(
    "add",
    description="Add two numbers.",
    input_schema={
        "type": "object",
        "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
        "required": ["a", "b"],
    },
)
def add(arguments: dict[str, Any]) -> str:
    return str(arguments["a"] + arguments["b"])


async def main() -> None:
    # stdout carries protocol frames; logs go to stderr.
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    server = Server(
        ServerStdioTransport(),
        tools=tools,
        server_info=Implementation(name="echo-server", version="0.1.0"),
    )
    await server.listen()


if __name__ == "__main__":
    asyncio.run(main())
