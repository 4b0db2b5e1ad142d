"""Tests for the newline-delimited stdio transport."""

from __future__ import annotations

import asyncio
import json

from commerce_mcp.server import CommerceServer
from commerce_mcp.transport.stdio import StdioServer


def _reader(*lines: str) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data(line.encode() + b"\n")
    reader.feed_eof()
    return reader


class TestStdioServer:
    async def test_request_response_lines(self, server: CommerceServer) -> None:
        written: list[str] = []
        reader = _reader(
            json.dumps({"jsonrpc": "2.0", "method": "ping", "id": 1}),
            "",
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            json.dumps({"jsonrpc": "2.0", "method": "tools/list", "id": 2}),
        )

        await StdioServer(server, write=written.append).serve(reader)

        assert all(line.endswith("\n") for line in written)
        responses = [json.loads(line) for line in written]
        assert [r["id"] for r in responses] == [1, 2]
        assert responses[0]["result"] == {}

    async def test_parse_error_keeps_serving(self, server: CommerceServer) -> None:
        written: list[str] = []
        reader = _reader("{oops", json.dumps({"jsonrpc": "2.0", "method": "ping", "id": 5}))

        await StdioServer(server, write=written.append).serve(reader)

        first, second = (json.loads(line) for line in written)
        assert first["error"]["code"] == -32700
        assert second["id"] == 5

    async def test_one_session_for_the_stream(self, server: CommerceServer) -> None:
        written: list[str] = []
        init = {
            "jsonrpc": "2.0",
            "method": "initialize",
            "params": {"protocolVersion": "2024-11-05", "capabilities": {}, "clientInfo": {"name": "c", "version": "1"}},
            "id": 1,
        }
        reader = _reader(json.dumps(init), json.dumps({**init, "id": 2}))

        await StdioServer(server, write=written.append).serve(reader)

        second = json.loads(written[1])
        assert second["error"]["code"] == -32600
        assert len(server.sessions) == 0

    async def test_oversized_line_answered_and_skipped(self, server: CommerceServer) -> None:
        written: list[str] = []
        reader = asyncio.StreamReader(limit=64)
        padded = {"jsonrpc": "2.0", "method": "ping", "id": 1, "params": {"pad": "x" * 200}}
        reader.feed_data(json.dumps(padded).encode() + b"\n")
        reader.feed_data(json.dumps({"jsonrpc": "2.0", "method": "ping", "id": 2}).encode() + b"\n")
        reader.feed_eof()

        await StdioServer(server, write=written.append).serve(reader)

        first, second = (json.loads(line) for line in written)
        assert first["id"] is None
        assert first["error"]["code"] == -32700
        assert second == {"jsonrpc": "2.0", "id": 2, "result": {}}

    async def test_session_cart_discarded_at_eof(self, server: CommerceServer) -> None:
        written: list[str] = []
        call = {
            "jsonrpc": "2.0",
            "method": "tools/call",
            "params": {"name": "add_to_cart", "arguments": {"productId": "prod-005", "quantity": 1}},
            "id": 1,
        }

        await StdioServer(server, write=written.append).serve(_reader(json.dumps(call)))

        assert json.loads(json.loads(written[0])["result"]["content"][0]["text"])["success"] is True
        assert len(server.sessions) == 0
        assert server.carts._carts == {}
