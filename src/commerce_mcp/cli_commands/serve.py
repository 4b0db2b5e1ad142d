"""``commerce-mcp serve`` / ``commerce-mcp stdio`` — run the server."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from commerce_mcp.cli_commands._output import console
from commerce_mcp.config import ServerSettings, SettingsError, SettingsLoader

_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Settings YAML file.",
)


def load_settings(config_path: str | None) -> ServerSettings:
    """Load settings from *config_path*, or defaults; exit 1 on errors."""
    if config_path is None:
        return ServerSettings()
    try:
        return SettingsLoader(Path(config_path)).load()
    except SettingsError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)


def _setup(settings: ServerSettings, *, allow_console_spans: bool) -> None:
    from commerce_mcp.utils.logging import configure_logging

    configure_logging(settings.log_level)
    if settings.telemetry.enabled:
        from commerce_mcp.utils.telemetry import configure_telemetry

        configure_telemetry(settings.telemetry, service_name=settings.name, allow_console=allow_console_spans)


@click.command()
@_config_option
@click.option("--host", default=None, help="Bind address (overrides settings).")
@click.option("--port", type=int, default=None, help="Bind port (overrides settings).")
@click.option("--log-level", default=None, help="Log level (overrides settings).")
@click.option("--telemetry", is_flag=True, help="Enable telemetry.")
def serve(
    config_path: str | None,
    host: str | None,
    port: int | None,
    log_level: str | None,
    telemetry: bool,
) -> None:
    """Serve the MCP endpoint over HTTP and WebSocket."""
    import uvicorn

    from commerce_mcp.server import build_server
    from commerce_mcp.transport.http import create_app

    settings = load_settings(config_path)
    if host is not None:
        settings.http.host = host
    if port is not None:
        settings.http.port = port
    if log_level is not None:
        settings.log_level = log_level
    if telemetry:
        settings.telemetry.enabled = True

    _setup(settings, allow_console_spans=True)
    try:
        server = build_server(settings)
    except SettingsError as exc:
        console.print(f"[red]Catalog error:[/red] {exc}")
        sys.exit(1)

    uvicorn.run(
        create_app(server),
        host=settings.http.host,
        port=settings.http.port,
        log_level=settings.log_level.lower(),
    )


@click.command()
@_config_option
@click.option("--log-level", default=None, help="Log level (overrides settings).")
def stdio(config_path: str | None, log_level: str | None) -> None:
    """Serve the MCP protocol over stdin/stdout."""
    from commerce_mcp.server import build_server
    from commerce_mcp.transport.stdio import run_stdio

    settings = load_settings(config_path)
    if log_level is not None:
        settings.log_level = log_level

    # stdout carries protocol frames only.
    _setup(settings, allow_console_spans=False)
    try:
        server = build_server(settings)
    except SettingsError as exc:
        click.echo(f"Catalog error: {exc}", err=True)
        sys.exit(1)

    asyncio.run(run_stdio(server))
