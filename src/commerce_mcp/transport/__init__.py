"""Transports — HTTP/WebSocket (FastAPI) and stdio."""

from commerce_mcp.transport.http import SESSION_HEADER, create_app
from commerce_mcp.transport.stdio import StdioServer, run_stdio

__all__ = ["SESSION_HEADER", "StdioServer", "create_app", "run_stdio"]
