"""Commerce MCP — JSON-RPC tool-invocation surface for an agent-facing shop."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from commerce_mcp.server import CommerceServer as CommerceServer
    from commerce_mcp.server import build_server as build_server

_SERVER_EXPORTS = {
    "CommerceServer": "commerce_mcp.server",
    "build_server": "commerce_mcp.server",
}


def __getattr__(name: str) -> object:
    module_path = _SERVER_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'commerce_mcp' has no attribute {name!r}")
