"""Tests for ``commerce-mcp tools`` CLI commands."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner
from rich.logging import RichHandler

from commerce_mcp.cli import main
from commerce_mcp.client import ServerUnavailableError


class TestToolsList:
    def test_table(self) -> None:
        result = CliRunner().invoke(main, ["tools", "list"])
        assert result.exit_code == 0
        assert "search_products" in result.output
        assert "checkout" in result.output

    def test_json(self) -> None:
        result = CliRunner().invoke(main, ["tools", "list", "--json"])
        assert result.exit_code == 0
        names = {tool["name"] for tool in json.loads(result.output)}
        assert "add_to_cart" in names


class TestToolsCall:
    def test_call(self) -> None:
        result = CliRunner().invoke(
            main, ["tools", "call", "get_product_details", "--args", '{"productId": "prod-003"}']
        )
        assert result.exit_code == 0
        assert "UltraBook 14 Laptop" in result.output

    def test_declined_operation_still_succeeds(self) -> None:
        result = CliRunner().invoke(
            main, ["tools", "call", "add_to_cart", "--args", '{"productId": "out-of-stock-prod", "quantity": 1}']
        )
        assert result.exit_code == 0
        assert "out of stock" in result.output

    def test_protocol_error_exits_1(self) -> None:
        result = CliRunner().invoke(main, ["tools", "call", "bogus_tool"])
        assert result.exit_code == 1
        assert "-32002" in result.output

    def test_bad_json(self) -> None:
        result = CliRunner().invoke(main, ["tools", "call", "get_cart", "--args", "{nope"])
        assert result.exit_code == 1
        assert "Invalid --args JSON" in result.output


class TestToolsDiscover:
    def test_discover_tools(self) -> None:
        tools = [{"name": "search_products", "description": "Search", "inputSchema": {"required": ["query"]}}]

        with patch("commerce_mcp.client.CommerceMCPClient") as mock_client_cls:
            mock_instance = mock_client_cls.return_value
            mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
            mock_instance.__aexit__ = AsyncMock(return_value=False)
            mock_instance.list_tools = AsyncMock(return_value=tools)

            result = CliRunner().invoke(main, ["tools", "discover", "http://shop/mcp"])

            assert result.exit_code == 0
            assert "search_products" in result.output
            mock_client_cls.assert_called_once_with("http://shop/mcp")

    def test_discover_no_tools(self) -> None:
        with patch("commerce_mcp.client.CommerceMCPClient") as mock_client_cls:
            mock_instance = mock_client_cls.return_value
            mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
            mock_instance.__aexit__ = AsyncMock(return_value=False)
            mock_instance.list_tools = AsyncMock(return_value=[])

            result = CliRunner().invoke(main, ["tools", "discover", "http://shop/mcp"])

            assert result.exit_code == 0
            assert "No tools discovered" in result.output

    def test_discover_error(self) -> None:
        with patch("commerce_mcp.client.CommerceMCPClient") as mock_client_cls:
            mock_instance = mock_client_cls.return_value
            mock_instance.__aenter__ = AsyncMock(side_effect=ServerUnavailableError("refused"))
            mock_instance.__aexit__ = AsyncMock(return_value=False)

            result = CliRunner().invoke(main, ["tools", "discover", "http://nowhere/mcp"])

            assert result.exit_code == 1
            assert "Discovery error" in result.output


class TestLoggingIsolation:
    """``serve`` installs a root handler; the next command's output stays clean."""

    def test_serve_installs_handler(self) -> None:
        with patch("uvicorn.run"):
            result = CliRunner().invoke(main, ["serve", "--log-level", "debug"])
        assert result.exit_code == 0
        assert any(isinstance(h, RichHandler) for h in logging.getLogger().handlers)

    def test_next_command_output_is_json(self) -> None:
        assert not any(isinstance(h, RichHandler) for h in logging.getLogger().handlers)
        result = CliRunner().invoke(main, ["tools", "list", "--json"])
        assert result.exit_code == 0
        assert isinstance(json.loads(result.output), list)
