"""stdio transport — newline-delimited JSON over stdin/stdout.

One session lives for the whole process.  stdout carries protocol
messages only; logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from commerce_mcp.protocol.errors import ParseError
from commerce_mcp.protocol.models import JsonRpcResponse

if TYPE_CHECKING:
    from commerce_mcp.server import CommerceServer

logger = logging.getLogger(__name__)

# Upper bound on a single JSON line read from stdin.
MAX_LINE_BYTES = 4 * 1024 * 1024


class StdioServer:
    """Serve JSON-RPC lines read from a stream reader."""

    def __init__(self, server: CommerceServer, *, write: Callable[[str], None]) -> None:
        self._server = server
        self._write = write

    async def serve(self, reader: asyncio.StreamReader) -> None:
        """Process lines until EOF.

        A line longer than the reader's limit is dropped by ``readline``; it
        is answered with a parse error and reading continues.
        """
        session = self._server.open_session()
        logger.info("stdio session %s opened", session.session_id)
        try:
            while True:
                try:
                    line = await reader.readline()
                except ValueError as exc:
                    logger.warning("Discarded oversized stdio line: %s", exc)
                    self._send(_oversized_line_error())
                    continue
                if not line:
                    break
                if not line.strip():
                    continue
                outcome = await self._server.handle(line, session)
                if outcome.body is not None:
                    self._send(outcome.body)
        finally:
            await self._server.close_session(session.session_id)
            logger.info("stdio session %s closed", session.session_id)

    def _send(self, body: Any) -> None:
        self._write(json.dumps(body) + "\n")


def _oversized_line_error() -> dict[str, Any]:
    error = ParseError("Parse error: message exceeds the maximum line length")
    return JsonRpcResponse.failure(None, error.to_error()).to_wire()


async def run_stdio(server: CommerceServer) -> None:
    """Serve *server* on the process's stdin/stdout."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)

    def write(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    await StdioServer(server, write=write).serve(reader)
