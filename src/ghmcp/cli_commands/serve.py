"""``ghmcp serve`` — run the bridge on stdin/stdout."""

from __future__ import annotations

import sys

import click
from pydantic import ValidationError

from ghmcp.cli_commands._output import err_console


@click.command("serve")
@click.option(
    "--server-url",
    default=None,
    help="Base URL of the HTTP API (env: MCP_SERVER_URL).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Diagnostic verbosity on stderr (env: GHMCP_LOG_LEVEL).",
)
@click.option(
    "--http-timeout",
    type=float,
    default=None,
    help="Abandon HTTP calls after this many seconds (env: GHMCP_HTTP_TIMEOUT).",
)
@click.option("--telemetry", is_flag=True, help="Export OpenTelemetry spans to stderr.")
@click.option("--otlp-endpoint", default=None, help="Also export spans via OTLP/gRPC.")
def serve_cmd(
    server_url: str | None,
    log_level: str | None,
    http_timeout: float | None,
    telemetry: bool,
    otlp_endpoint: str | None,
) -> None:
    """Serve the GitHub tools as an MCP server over stdio.

    stdout carries JSON-RPC only; all diagnostics go to stderr.
    """
    from ghmcp.config import BridgeSettings
    from ghmcp.server import serve
    from ghmcp.utils.log import configure_logging

    try:
        settings = BridgeSettings.from_env(
            server_url=server_url,
            log_level=log_level,
            http_timeout=http_timeout,
        )
    except ValidationError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(2)

    configure_logging(settings.log_level)

    provider = None
    if telemetry or otlp_endpoint:
        from ghmcp.utils.telemetry import configure_telemetry

        try:
            provider = configure_telemetry(export_to_stderr=telemetry, otlp_endpoint=otlp_endpoint)
        except ImportError as exc:
            err_console.print(f"[red]Telemetry unavailable:[/red] {exc}")
            sys.exit(2)

    try:
        serve(settings)
    finally:
        if provider is not None:
            provider.shutdown()
