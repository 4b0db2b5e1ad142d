"""Logging setup for the CLI entry points.

All log output goes to stderr so the stdio transport keeps stdout for
protocol frames.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_CONFIGURED_MARKER = "_commerce_mcp_handler"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a :class:`RichHandler` on the root logger (idempotent)."""
    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)

    for handler in root.handlers:
        if getattr(handler, _CONFIGURED_MARKER, False):
            return

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    setattr(handler, _CONFIGURED_MARKER, True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
