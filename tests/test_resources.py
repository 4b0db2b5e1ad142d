"""Tests for resources/list, resources/templates/list and resources/read."""

from __future__ import annotations

import json


def _decode(body: dict) -> dict:
    return json.loads(body["result"]["contents"][0]["text"])


class TestListing:
    async def test_resources_list(self, rpc) -> None:
        body = await rpc("resources/list")
        uris = {entry["uri"] for entry in body["result"]["resources"]}
        assert uris == {"products://{productId}", "categories://{category}", "cart://{cartKey}", "orders://{orderId}"}

    async def test_templates_list(self, rpc) -> None:
        body = await rpc("resources/templates/list")
        templates = body["result"]["resourceTemplates"]
        assert all("uriTemplate" in t and t["mimeType"] == "application/json" for t in templates)


class TestRead:
    async def test_product(self, rpc) -> None:
        body = await rpc("resources/read", {"uri": "products://prod-002"})
        content = body["result"]["contents"][0]
        assert content["uri"] == "products://prod-002"
        assert content["mimeType"] == "application/json"
        assert _decode(body)["name"] == "Wireless Headphones Max"

    async def test_category(self, rpc) -> None:
        body = await rpc("resources/read", {"uri": "categories://electronics"})
        payload = _decode(body)
        assert payload["category"] == "electronics"
        assert {p["id"] for p in payload["products"]} == {"prod-001", "prod-002"}

    async def test_current_cart(self, rpc, call_tool) -> None:
        await call_tool("add_to_cart", {"productId": "prod-005", "quantity": 2})
        body = await rpc("resources/read", {"uri": "cart://current"})
        assert _decode(body)["itemCount"] == 2

    async def test_foreign_cart_not_found(self, rpc) -> None:
        body = await rpc("resources/read", {"uri": "cart://someone-else"})
        assert body["error"]["code"] == -32002

    async def test_order(self, rpc, call_tool, shipping_address) -> None:
        await call_tool("add_to_cart", {"productId": "prod-005", "quantity": 1})
        order = await call_tool("checkout", {"shippingAddress": shipping_address})
        body = await rpc("resources/read", {"uri": f"orders://{order['orderId']}"})
        assert _decode(body)["id"] == order["orderId"]

    async def test_unknown_product(self, rpc) -> None:
        body = await rpc("resources/read", {"uri": "products://nope"})
        assert body["error"]["code"] == -32002
        assert body["error"]["message"] == "Resource not found: products://nope"

    async def test_unknown_scheme(self, rpc) -> None:
        body = await rpc("resources/read", {"uri": "ftp://x"})
        assert body["error"]["code"] == -32002

    async def test_missing_uri(self, rpc) -> None:
        body = await rpc("resources/read", {})
        assert body["error"]["code"] == -32602
