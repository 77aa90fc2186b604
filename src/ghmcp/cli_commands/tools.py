"""``ghmcp tools`` — inspect the tool catalog and its HTTP routes."""

from __future__ import annotations

import json
import sys

import click

from ghmcp.cli_commands._output import console, print_tool_detail, print_tools_table
from ghmcp.tools.registry import build_default_registry
from ghmcp.tools.routes import ROUTES, verify_routes


@click.group()
def tools() -> None:
    """Inspect the GitHub tool catalog."""


@tools.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output the tools/list payload as JSON.")
def list_tools(as_json: bool) -> None:
    """List every tool the bridge advertises."""
    registry = build_default_registry()
    if as_json:
        console.print_json(json.dumps({"tools": registry.to_wire()}))
        return
    print_tools_table(list(registry), ROUTES)


@tools.command("show")
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def show_tool(name: str, as_json: bool) -> None:
    """Show the schema and endpoint of tool NAME."""
    registry = build_default_registry()
    tool = registry.get(name)
    if tool is None:
        console.print(f"[red]Unknown tool:[/red] {name}")
        sys.exit(1)
    print_tool_detail(tool, ROUTES.get(name), as_json=as_json)


@tools.command("verify")
def verify() -> None:
    """Check that the route table covers every tool's required arguments."""
    problems = verify_routes(build_default_registry())
    if problems:
        for problem in problems:
            console.print(f"[red]✗[/red] {problem}")
        sys.exit(1)
    console.print(f"[green]All {len(ROUTES)} tools are routed consistently.[/green]")
