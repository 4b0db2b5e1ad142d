"""CommerceMCPClient — talks to a commerce MCP server over HTTP.

Performs the ``initialize`` handshake, keeps the ``Mcp-Session-Id``
header for later calls, and exposes tool discovery and execution.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from commerce_mcp import __version__
from commerce_mcp.protocol.errors import NOT_FOUND
from commerce_mcp.protocol.models import JSONRPC_VERSION
from commerce_mcp.protocol.session import LATEST_PROTOCOL_VERSION
from commerce_mcp.transport.http import SESSION_HEADER

logger = logging.getLogger(__name__)


class ClientError(Exception):
    """Base error for client-side failures."""


class ServerUnavailableError(ClientError):
    """The server could not be reached or answered with an HTTP error."""


class RemoteError(ClientError):
    """The server answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"[{code}] {message}")


class ToolNotFoundError(RemoteError):
    """The server does not know the requested tool."""


class CommerceMCPClient:
    """Async context manager for a commerce MCP server's HTTP endpoint.

    Usage::

        async with CommerceMCPClient("http://127.0.0.1:8000/mcp") as client:
            tools = await client.list_tools()
            result = await client.call_tool("search_products", {"query": "watch"})
    """

    def __init__(
        self,
        url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        protocol_version: str = LATEST_PROTOCOL_VERSION,
        client_name: str = "commerce-mcp-client",
        timeout: float = 30.0,
    ) -> None:
        self._url = url
        self._http = http_client
        self._owns_http = http_client is None
        self._protocol_version = protocol_version
        self._client_name = client_name
        self._timeout = timeout
        self._session_id: str | None = None
        self._server_info: dict[str, Any] = {}
        self._next_id = 1

    async def __aenter__(self) -> CommerceMCPClient:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def server_info(self) -> dict[str, Any]:
        return self._server_info

    async def connect(self) -> None:
        """Open the HTTP client and perform the initialize handshake."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout)
        await self._handshake()

    async def close(self) -> None:
        """End the server session and close the HTTP client if we own it."""
        if self._http is None:
            return
        if self._session_id is not None:
            try:
                await self._http.delete(self._url, headers=self._headers())
            except httpx.HTTPError as exc:
                logger.warning("Could not close session %s: %s", self._session_id, exc)
            self._session_id = None
        if self._owns_http:
            await self._http.aclose()
            self._http = None

    async def list_tools(self) -> list[dict[str, Any]]:
        """Send ``tools/list`` and return the raw descriptors."""
        result = await self.request("tools/list")
        return list(result.get("tools", []))

    async def discover_tools(self) -> list[dict[str, Any]]:
        """Return the server's tools as function-calling schemas."""
        return [self._to_function_schema(tool) for tool in await self.list_tools()]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """Send ``tools/call``; the JSON payload is decoded when possible."""
        try:
            result = await self.request("tools/call", {"name": name, "arguments": arguments or {}})
        except RemoteError as exc:
            if exc.code == NOT_FOUND:
                raise ToolNotFoundError(exc.code, exc.message, exc.data) from exc
            raise
        return self._extract_content(result)

    async def read_resource(self, uri: str) -> Any:
        """Send ``resources/read`` and decode the first content block."""
        result = await self.request("resources/read", {"uri": uri})
        contents = result.get("contents", [])
        if not contents:
            return None
        return _maybe_json(str(contents[0].get("text", "")))

    async def get_prompt(self, name: str, arguments: dict[str, str] | None = None) -> dict[str, Any]:
        return await self.request("prompts/get", {"name": name, "arguments": arguments or {}})  # type: ignore[no-any-return]

    async def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send a JSON-RPC request and return its ``result``.

        Raises:
            RemoteError: If the server answered with an error object.
            ServerUnavailableError: On transport or HTTP status failures.
        """
        request_id = self._next_id
        self._next_id += 1
        payload: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method, "id": request_id}
        if params is not None:
            payload["params"] = params

        body = await self._post(payload)
        if not isinstance(body, dict):
            msg = f"Unexpected response to {method}: {body!r}"
            raise ClientError(msg)
        error = body.get("error")
        if error is not None:
            raise RemoteError(int(error.get("code", 0)), str(error.get("message", "")), error.get("data"))
        return body.get("result")

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a JSON-RPC notification (no response expected)."""
        payload: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
        if params is not None:
            payload["params"] = params
        await self._post(payload)

    async def _handshake(self) -> None:
        result = await self.request(
            "initialize",
            {
                "protocolVersion": self._protocol_version,
                "capabilities": {},
                "clientInfo": {"name": self._client_name, "version": __version__},
            },
        )
        self._server_info = dict(result.get("serverInfo", {}))
        await self.notify("notifications/initialized")
        logger.debug("Connected to %s (session %s)", self._url, self._session_id)

    async def _post(self, payload: dict[str, Any]) -> Any:
        if self._http is None:
            msg = "Client not connected"
            raise RuntimeError(msg)
        try:
            response = await self._http.post(self._url, json=payload, headers=self._headers())
        except httpx.HTTPError as exc:
            raise ServerUnavailableError(str(exc)) from exc

        session_id = response.headers.get(SESSION_HEADER)
        if session_id:
            self._session_id = session_id
        if response.status_code == 204:
            return None
        if response.status_code not in (200, 400):
            msg = f"HTTP {response.status_code} from {self._url}"
            raise ServerUnavailableError(msg)
        return response.json()

    def _headers(self) -> dict[str, str]:
        return {SESSION_HEADER: self._session_id} if self._session_id else {}

    @staticmethod
    def _to_function_schema(tool: dict[str, Any]) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool.get("name", ""),
                "description": tool.get("description", ""),
                "parameters": tool.get("inputSchema") or {"type": "object", "properties": {}},
            },
        }

    @staticmethod
    def _extract_content(result: dict[str, Any] | None) -> Any:
        if not result:
            return None
        parts = [str(item.get("text", "")) for item in result.get("content", []) if item.get("type") == "text"]
        if len(parts) == 1:
            return _maybe_json(parts[0])
        return "\n".join(parts)


def _maybe_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text
