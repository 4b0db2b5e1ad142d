"""Tool handlers — each pairs a descriptor with an async handler."""

from __future__ import annotations

from typing import TYPE_CHECKING

from commerce_mcp.tools.base import ToolContext

if TYPE_CHECKING:
    from commerce_mcp.protocol.registry import SchemaRegistry

__all__ = ["ToolContext", "register_tools"]


def register_tools(registry: SchemaRegistry) -> None:
    """Register every built-in tool on *registry*."""
    from commerce_mcp.tools import cart, catalog, orders

    catalog.register(registry)
    cart.register(registry)
    orders.register(registry)
