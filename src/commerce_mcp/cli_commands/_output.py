"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

console = Console()


def print_tools_table(tools: list[dict[str, Any]], *, title: str = "Tools") -> None:
    """Pretty-print tool descriptors (``name``/``description``/``inputSchema``)."""
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Required")

    for tool in tools:
        schema = tool.get("inputSchema") or {}
        required = ", ".join(schema.get("required", [])) or "-"
        table.add_row(
            tool.get("name", "?"),
            _truncate(tool.get("description", "")),
            required,
        )

    console.print(table)


def print_payload(payload: Any) -> None:
    """Print a tool result: JSON when structured, plain text otherwise."""
    if isinstance(payload, (dict, list)):
        console.print_json(json.dumps(payload, default=str))
    else:
        console.print(payload)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
