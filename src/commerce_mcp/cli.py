"""commerce-mcp CLI entrypoint."""

from __future__ import annotations

import click

from commerce_mcp import __version__


@click.group()
@click.version_option(version=__version__, prog_name="commerce-mcp")
def main() -> None:
    """commerce-mcp — MCP tool server for an e-commerce backend."""


# Register subcommands
from commerce_mcp.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
