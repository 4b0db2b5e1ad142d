"""HTTP and WebSocket transport — a FastAPI app around :class:`CommerceServer`.

``POST /mcp`` carries one JSON-RPC payload per request.  A session is
identified by the ``Mcp-Session-Id`` header returned from ``initialize``;
requests without the header run in a throwaway session that is discarded
unless the request initialised it.

Header sessions idle for longer than ``http.session_idle_timeout`` are
expired by a background sweep.  ``/mcp/ws`` keeps one session for the
lifetime of the connection and accepts text frames only.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from commerce_mcp.protocol.errors import ParseError
from commerce_mcp.protocol.models import JsonRpcResponse
from commerce_mcp.utils.telemetry import ATTR_SESSION_ID, ATTR_TRANSPORT, get_tracer

if TYPE_CHECKING:
    from commerce_mcp.protocol.session import Session
    from commerce_mcp.server import CommerceServer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

SESSION_HEADER = "Mcp-Session-Id"

# Longest pause between idle-session sweeps, in seconds.
MAX_SWEEP_INTERVAL = 60.0


def create_app(server: CommerceServer) -> FastAPI:
    """Build the FastAPI application serving *server*."""

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        timeout = server.settings.http.session_idle_timeout
        sweeper = asyncio.create_task(_sweep_idle_sessions(server, timeout)) if timeout else None
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper

    app = FastAPI(title=server.settings.name, version=server.settings.version, lifespan=lifespan)
    app.state.server = server

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "name": server.settings.name,
            "version": server.settings.version,
            "sessions": len(server.sessions),
        }

    @app.post("/mcp")
    async def mcp_post(request: Request) -> Response:
        session_id = request.headers.get(SESSION_HEADER)
        if session_id:
            session = server.sessions.get(session_id)
            if session is None:
                return _unknown_session(session_id)
        else:
            session = server.open_session(transient=True)

        raw = await request.body()
        try:
            with _tracer.start_as_current_span("mcp.http") as span:
                span.set_attribute(ATTR_TRANSPORT, "http")
                span.set_attribute(ATTR_SESSION_ID, session.session_id)
                outcome = await server.handle(raw, session)
        finally:
            if session.transient and not session.initialized:
                await server.close_session(session.session_id)

        headers = _session_headers(session)
        if outcome.body is None:
            return Response(status_code=204, headers=headers)
        status = 400 if outcome.malformed else 200
        return JSONResponse(outcome.body, status_code=status, headers=headers)

    @app.delete("/mcp")
    async def mcp_delete(request: Request) -> Response:
        session_id = request.headers.get(SESSION_HEADER)
        if not session_id or server.sessions.get(session_id) is None:
            return _unknown_session(session_id or "")
        await server.close_session(session_id)
        logger.info("Session %s closed by client", session_id)
        return Response(status_code=204)

    @app.websocket("/mcp/ws")
    async def mcp_websocket(websocket: WebSocket) -> None:
        await websocket.accept()
        session = server.open_session()
        logger.info("WebSocket session %s opened", session.session_id)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    logger.info("WebSocket session %s disconnected", session.session_id)
                    break
                raw = message.get("text")
                if raw is None:
                    await websocket.send_json(_binary_frame_error())
                    continue
                outcome = await server.handle(raw, session)
                if outcome.body is not None:
                    await websocket.send_json(outcome.body)
        except WebSocketDisconnect:
            logger.info("WebSocket session %s disconnected", session.session_id)
        finally:
            await server.close_session(session.session_id)

    return app


async def _sweep_idle_sessions(server: CommerceServer, timeout: float) -> None:
    interval = min(timeout, MAX_SWEEP_INTERVAL)
    while True:
        await asyncio.sleep(interval)
        await server.expire_idle_sessions(timeout)


def _binary_frame_error() -> dict[str, Any]:
    error = ParseError("Parse error: binary frames are not supported")
    return JsonRpcResponse.failure(None, error.to_error()).to_wire()


def _session_headers(session: Session) -> dict[str, str]:
    return {SESSION_HEADER: session.session_id} if session.initialized else {}


def _unknown_session(session_id: str) -> JSONResponse:
    return JSONResponse({"detail": f"Session not found: {session_id}"}, status_code=404)
