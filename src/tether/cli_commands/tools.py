"""``tether tools`` — list and call tools on a server."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import click

from tether.cli_commands._output import (
    console,
    print_tool_result,
    print_tools_json,
    print_tools_table,
)

if TYPE_CHECKING:
    from tether.config import ServerRef

_CLIENT_INFO = {"name": "tether-cli", "version": "0.1.0"}

transport_option = click.option(
    "--transport",
    type=click.Choice(["stdio", "websocket"]),
    default="stdio",
    help="Server transport type.",
)


def _server_ref(server: str, transport: str) -> ServerRef:
    from tether.config import ServerRef

    if transport == "stdio":
        return ServerRef(name="cli", transport="stdio", command=server)
    return ServerRef(name="cli", transport="websocket", url=server)


@click.group()
def tools() -> None:
    """List and call server tools."""


@tools.command("list")
@click.argument("server")
@transport_option
@click.option("--json", "as_json", is_flag=True, help="Print tool definitions as JSON.")
def list_cmd(server: str, transport: str, as_json: bool) -> None:
    """List the tools a server exposes.

    SERVER is the command (for stdio) or URL (for websocket) of the server.
    """
    from tether.client import Client
    from tether.protocol.models import Implementation, ToolDefinition
    from tether.transport import create_transport

    ref = _server_ref(server, transport)

    async def _list() -> list[ToolDefinition]:
        async with Client(create_transport(ref)) as client:
            await client.initialize(Implementation(**_CLIENT_INFO))
            return await client.list_tools()

    try:
        definitions = asyncio.run(_list())
    except Exception as exc:
        console.print(f"[red]Listing error:[/red] {exc}")
        return

    if as_json:
        print_tools_json(definitions)
        return
    if not definitions:
        console.print("[yellow]No tools exposed.[/yellow]")
        return
    print_tools_table(definitions)


@tools.command("call")
@click.argument("server")
@click.argument("tool_name")
@click.option("--arguments", "arguments", default="{}", help="Tool arguments as a JSON object.")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for the result.")
@transport_option
def call_cmd(
    server: str,
    tool_name: str,
    arguments: str,
    timeout: float | None,
    transport: str,
) -> None:
    """Call TOOL_NAME on SERVER with JSON arguments."""
    from tether.client import Client
    from tether.protocol.engine import RequestOptions
    from tether.protocol.models import CallToolResponse, Implementation
    from tether.transport import create_transport

    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--arguments") from exc
    if not isinstance(parsed, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--arguments")

    ref = _server_ref(server, transport)
    options = RequestOptions(timeout=timeout)

    async def _call() -> CallToolResponse:
        async with Client(create_transport(ref)) as client:
            await client.initialize(Implementation(**_CLIENT_INFO))
            return await client.call_tool(tool_name, parsed, options)

    try:
        result = asyncio.run(_call())
    except Exception as exc:
        console.print(f"[red]Call error:[/red] {exc}")
        raise SystemExit(1) from exc

    print_tool_result(result)
    if result.is_error:
        raise SystemExit(1)
