"""Shared fixtures: an in-process server, a session and JSON-RPC helpers."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from commerce_mcp.protocol.session import Session
from commerce_mcp.server import CommerceServer, build_server
from commerce_mcp.tools.base import ToolContext

Rpc = Callable[..., Awaitable[Any]]

SHIPPING_ADDRESS = {
    "name": "Ada Lovelace",
    "street": "12 Analytical Way",
    "city": "London",
    "state": "LDN",
    "zip": "N1 9GU",
    "country": "UK",
}


@pytest.fixture
def server() -> CommerceServer:
    return build_server()


@pytest.fixture
def session(server: CommerceServer) -> Session:
    return server.open_session()


@pytest.fixture
def context(server: CommerceServer, session: Session) -> ToolContext:
    return ToolContext(
        session=session,
        catalog=server.catalog,
        carts=server.carts,
        orders=server.orders,
        settings=server.settings,
    )


@pytest.fixture
def rpc(server: CommerceServer, session: Session) -> Rpc:
    """Send one request on the fixture session and return the response body."""

    async def _rpc(method: str, params: Any = None, *, request_id: int | str | None = 1) -> Any:
        payload: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            payload["params"] = params
        if request_id is not None:
            payload["id"] = request_id
        outcome = await server.handle(json.dumps(payload), session)
        return outcome.body

    return _rpc


@pytest.fixture
def call_tool(rpc: Rpc) -> Rpc:
    """Call a tool and return its decoded JSON payload (fails on protocol errors)."""

    async def _call(name: str, arguments: dict[str, Any] | None = None) -> Any:
        body = await rpc("tools/call", {"name": name, "arguments": arguments or {}})
        assert "error" not in body, body
        return json.loads(body["result"]["content"][0]["text"])

    return _call


@pytest.fixture
def shipping_address() -> dict[str, str]:
    return dict(SHIPPING_ADDRESS)
