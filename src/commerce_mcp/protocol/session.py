"""Session and capability negotiation.

A :class:`Session` is created per client connection (stdio, WebSocket) or
per ``Mcp-Session-Id`` (HTTP), initialised once by ``initialize`` and
discarded when the connection ends.  Sessions are only ever mutated by
their own request stream, so no locking is done here.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from commerce_mcp.protocol.errors import InvalidParamsError, InvalidRequestError, SessionNotFoundError
from commerce_mcp.protocol.models import ClientInfo, InitializeParams, ServerInfo

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[-1]

# Cart key shared by transient sessions that never ran ``initialize``.
DEFAULT_CART_KEY = "default"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    """Negotiated state for one client connection."""

    session_id: str
    created_at: datetime = Field(default_factory=_utcnow)
    transient: bool = False
    initialized: bool = False
    ready: bool = False
    protocol_version: str | None = None
    client_capabilities: dict[str, Any] = Field(default_factory=dict)
    client_info: ClientInfo | None = None
    last_active: datetime = Field(default_factory=_utcnow)

    @property
    def cart_key(self) -> str:
        """Key of this session's cart.

        A connection-bound session owns a cart keyed by its id.  Transient
        sessions (one HTTP request without ``Mcp-Session-Id``) share
        :data:`DEFAULT_CART_KEY` until they initialise.
        """
        if self.transient and not self.initialized:
            return DEFAULT_CART_KEY
        return self.session_id


class SessionManager:
    """Create, look up, initialise and destroy sessions."""

    def __init__(
        self,
        server_info: ServerInfo,
        *,
        supported_versions: tuple[str, ...] = SUPPORTED_PROTOCOL_VERSIONS,
    ) -> None:
        if not supported_versions:
            msg = "At least one protocol version must be supported"
            raise ValueError(msg)
        self._server_info = server_info
        self._supported_versions = supported_versions
        self._sessions: dict[str, Session] = {}

    @property
    def server_info(self) -> ServerInfo:
        return self._server_info

    @property
    def supported_versions(self) -> tuple[str, ...]:
        return self._supported_versions

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, session_id: str | None = None, *, transient: bool = False) -> Session:
        """Open a fresh, uninitialised session."""
        sid = session_id or uuid.uuid4().hex
        if sid in self._sessions:
            msg = f"Session already exists: {sid}"
            raise ValueError(msg)
        session = Session(session_id=sid, transient=transient)
        self._sessions[sid] = session
        logger.debug("Session %s created", sid)
        return session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def require(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def touch(self, session: Session) -> None:
        session.last_active = _utcnow()

    def idle_transient(self, max_idle: float, *, now: datetime | None = None) -> list[Session]:
        """Transient sessions with no activity for more than *max_idle* seconds."""
        now = now or _utcnow()
        return [
            s
            for s in self._sessions.values()
            if s.transient and (now - s.last_active).total_seconds() > max_idle
        ]

    def destroy(self, session_id: str) -> None:
        """Discard a session (no-op if absent)."""
        if self._sessions.pop(session_id, None) is not None:
            logger.debug("Session %s destroyed", session_id)

    def negotiate_version(self, requested: str) -> str:
        """Echo *requested* if supported, otherwise offer the latest version."""
        if requested in self._supported_versions:
            return requested
        return self._supported_versions[-1]

    def server_capabilities(self) -> dict[str, Any]:
        return {"tools": {}, "resources": {}, "prompts": {}}

    def initialize(self, session: Session, params: Any) -> dict[str, Any]:
        """Handle ``initialize`` for *session* and build the result payload.

        Raises:
            InvalidRequestError: If the session was already initialised.
            InvalidParamsError: If required params are missing or malformed.
        """
        if session.initialized:
            msg = "Invalid request: session is already initialized"
            raise InvalidRequestError(msg, data={"sessionId": session.session_id})

        if not isinstance(params, dict):
            msg = "Invalid params: 'initialize' requires an object"
            raise InvalidParamsError(msg)
        try:
            parsed = InitializeParams.model_validate(params)
        except ValidationError as exc:
            raise InvalidParamsError(
                "Invalid params: initialize requires protocolVersion, capabilities and clientInfo",
                data=exc.errors(include_url=False, include_context=False, include_input=False),
            ) from exc

        version = self.negotiate_version(parsed.protocol_version)
        session.initialized = True
        session.protocol_version = version
        session.client_capabilities = dict(parsed.capabilities)
        session.client_info = parsed.client_info

        logger.info(
            "Session %s initialized by %s %s (protocol %s)",
            session.session_id,
            parsed.client_info.name,
            parsed.client_info.version,
            version,
        )

        return {
            "protocolVersion": version,
            "capabilities": self.server_capabilities(),
            "serverInfo": self._server_info.model_dump(),
            "sessionId": session.session_id,
        }
