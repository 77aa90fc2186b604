"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from ghmcp.protocol.models import ToolDescriptor
    from ghmcp.tools.routes import ToolRoute

console = Console()
err_console = Console(stderr=True)


def print_tools_table(tools: list[ToolDescriptor], routes: dict[str, ToolRoute]) -> None:
    """Pretty-print the tool catalog as a table."""
    table = Table(title="GitHub Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Endpoint")
    table.add_column("Required")
    table.add_column("Description")

    for tool in tools:
        route = routes.get(tool.name)
        table.add_row(
            tool.name,
            _endpoint(route),
            ", ".join(tool.required) or "-",
            _truncate(tool.description),
        )

    console.print(table)


def print_tool_detail(tool: ToolDescriptor, route: ToolRoute | None, *, as_json: bool = False) -> None:
    """Print one tool's schema and the endpoint it maps to."""
    if as_json:
        data: dict[str, Any] = tool.to_wire()
        if route is not None:
            data["route"] = route.model_dump()
        console.print_json(json.dumps(data))
        return

    console.print(f"\n[bold]{tool.name}[/bold]")
    console.print(f"  {tool.description}")
    console.print(f"  Endpoint: {_endpoint(route)}")
    console.print("\n[bold]Arguments:[/bold]")
    required = set(tool.required)
    for name, schema in tool.properties.items():
        marker = "*" if name in required else " "
        kind = schema.get("type", "any")
        extra = ""
        if "enum" in schema:
            extra = f" one of {', '.join(str(v) for v in schema['enum'])}"
        if "default" in schema:
            extra += f" (default {schema['default']})"
        console.print(f"  {marker} {name}: {kind}{extra}")


def _endpoint(route: ToolRoute | None) -> str:
    if route is None:
        return "[red]unrouted[/red]"
    if route.kind == "stream":
        return f"SSE {route.path}"
    return f"{route.method} {route.path}"


def _truncate(text: str, max_len: int = 60) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
