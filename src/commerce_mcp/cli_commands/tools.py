"""``commerce-mcp tools`` — list, call and discover tools."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click

from commerce_mcp.cli_commands._output import console, print_payload, print_tools_table
from commerce_mcp.cli_commands.serve import load_settings


@click.group()
def tools() -> None:
    """List, call and discover tools."""


@tools.command("list")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--json", "as_json", is_flag=True, help="Print raw descriptors as JSON.")
def list_cmd(config_path: str | None, as_json: bool) -> None:
    """List the tools this server registers."""
    from commerce_mcp.server import build_server

    server = build_server(load_settings(config_path))
    descriptors = [d.to_wire() for d in server.registry.list_tools()]
    if as_json:
        click.echo(json.dumps(descriptors, indent=2))
        return
    print_tools_table(descriptors)


@tools.command("call")
@click.argument("name")
@click.option("--args", "-a", "raw_args", default="{}", help="Tool arguments as a JSON object.")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), default=None)
def call(name: str, raw_args: str, config_path: str | None) -> None:
    """Call tool NAME against an in-process server."""
    from commerce_mcp.protocol.models import JsonRpcRequest
    from commerce_mcp.server import build_server

    try:
        arguments: Any = json.loads(raw_args)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid --args JSON:[/red] {exc}")
        sys.exit(1)

    server = build_server(load_settings(config_path))
    request = JsonRpcRequest(method="tools/call", params={"name": name, "arguments": arguments}, id=1)

    async def _call() -> Any:
        session = server.open_session()
        try:
            return await server.dispatcher.dispatch(request, session)
        finally:
            await server.close_session(session.session_id)

    response = asyncio.run(_call())
    if response.error is not None:
        console.print(f"[red]Error {response.error.code}:[/red] {response.error.message}")
        sys.exit(1)

    for block in response.result.get("content", []):
        text = block.get("text", "")
        try:
            print_payload(json.loads(text))
        except ValueError:
            print_payload(text)


@tools.command("discover")
@click.argument("url")
def discover(url: str) -> None:
    """Discover tools from a running server.

    URL is the server's MCP endpoint, e.g. http://127.0.0.1:8000/mcp.
    """
    from commerce_mcp.client import ClientError, CommerceMCPClient

    async def _discover() -> list[dict[str, Any]]:
        async with CommerceMCPClient(url) as client:
            return await client.list_tools()

    try:
        descriptors = asyncio.run(_discover())
    except ClientError as exc:
        console.print(f"[red]Discovery error:[/red] {exc}")
        sys.exit(1)

    if not descriptors:
        console.print("[yellow]No tools discovered.[/yellow]")
        return

    print_tools_table(descriptors, title="Discovered Tools")
