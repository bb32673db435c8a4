"""Shared CLI output formatters."""

from __future__ import annotations

import json

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tether.protocol.models import CallToolResponse, ToolDefinition  # noqa: TC001

console = Console()


def print_tools_table(tools: list[ToolDefinition]) -> None:
    """Pretty-print tool definitions as a table."""
    table = Table(title="Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Parameters")

    for tool in tools:
        properties = tool.input_schema.get("properties", {})
        table.add_row(
            tool.name,
            _truncate(tool.description or ""),
            ", ".join(properties) or "-",
        )

    console.print(table)


def print_tools_json(tools: list[ToolDefinition]) -> None:
    console.print_json(json.dumps([tool.to_wire() for tool in tools]))


def print_tool_result(result: CallToolResponse) -> None:
    """Print a tools/call result, flagging tool-level errors in red."""
    if result.is_error:
        console.print(f"[red]Tool error:[/red] {escape(result.text())}")
        return
    text = result.text()
    if text:
        console.print(text, markup=False)
    else:
        console.print_json(json.dumps(result.to_wire()))


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
