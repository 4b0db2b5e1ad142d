"""Tests for SessionManager and capability negotiation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from commerce_mcp.protocol.errors import InvalidParamsError, InvalidRequestError, SessionNotFoundError
from commerce_mcp.protocol.models import ServerInfo
from commerce_mcp.protocol.session import DEFAULT_CART_KEY, LATEST_PROTOCOL_VERSION, SessionManager

INIT_PARAMS = {
    "protocolVersion": "2024-11-05",
    "capabilities": {},
    "clientInfo": {"name": "x", "version": "1"},
}


def _manager() -> SessionManager:
    return SessionManager(ServerInfo(name="shop", version="9.9"))


class TestLifecycle:
    def test_create_get_destroy(self) -> None:
        manager = _manager()
        session = manager.create()
        assert manager.get(session.session_id) is session
        assert len(manager) == 1
        manager.destroy(session.session_id)
        assert manager.get(session.session_id) is None
        assert len(manager) == 0

    def test_destroy_unknown_is_noop(self) -> None:
        _manager().destroy("nope")

    def test_explicit_id_must_be_unique(self) -> None:
        manager = _manager()
        manager.create("abc")
        with pytest.raises(ValueError, match="already exists"):
            manager.create("abc")

    def test_require_unknown(self) -> None:
        with pytest.raises(SessionNotFoundError, match="Session not found: zzz"):
            _manager().require("zzz")

    def test_empty_version_list_rejected(self) -> None:
        with pytest.raises(ValueError):
            SessionManager(ServerInfo(name="s", version="1"), supported_versions=())


class TestInitialize:
    def test_result_shape(self) -> None:
        manager = _manager()
        session = manager.create()
        result = manager.initialize(session, INIT_PARAMS)
        assert result["protocolVersion"] == "2024-11-05"
        assert result["serverInfo"] == {"name": "shop", "version": "9.9"}
        assert set(result["capabilities"]) == {"tools", "resources", "prompts"}
        assert result["sessionId"] == session.session_id
        assert session.initialized
        assert session.client_info is not None
        assert session.client_info.name == "x"

    def test_unsupported_version_offers_latest(self) -> None:
        manager = _manager()
        session = manager.create()
        result = manager.initialize(session, {**INIT_PARAMS, "protocolVersion": "1999-01-01"})
        assert result["protocolVersion"] == LATEST_PROTOCOL_VERSION
        assert session.protocol_version == LATEST_PROTOCOL_VERSION

    def test_second_initialize_rejected(self) -> None:
        manager = _manager()
        session = manager.create()
        manager.initialize(session, INIT_PARAMS)
        with pytest.raises(InvalidRequestError) as exc_info:
            manager.initialize(session, INIT_PARAMS)
        assert exc_info.value.code == -32600

    @pytest.mark.parametrize(
        "params",
        [None, [], {"capabilities": {}}, {**INIT_PARAMS, "clientInfo": {"name": "x"}}],
    )
    def test_bad_params(self, params: object) -> None:
        manager = _manager()
        session = manager.create()
        with pytest.raises(InvalidParamsError):
            manager.initialize(session, params)
        assert not session.initialized


class TestCartKey:
    def test_uninitialized_transient_uses_default(self) -> None:
        session = _manager().create(transient=True)
        assert session.cart_key == DEFAULT_CART_KEY

    def test_connection_session_uses_session_id(self) -> None:
        session = _manager().create()
        assert not session.initialized
        assert session.cart_key == session.session_id

    def test_transient_switches_to_session_id_on_initialize(self) -> None:
        manager = _manager()
        session = manager.create(transient=True)
        manager.initialize(session, INIT_PARAMS)
        assert session.cart_key == session.session_id

    def test_initialized_uses_session_id(self) -> None:
        manager = _manager()
        session = manager.create()
        manager.initialize(session, INIT_PARAMS)
        assert session.cart_key == session.session_id


class TestIdleSessions:
    def test_only_idle_transient_sessions_reported(self) -> None:
        manager = _manager()
        stale = manager.create(transient=True)
        fresh = manager.create(transient=True)
        connection = manager.create()
        later = datetime.now(timezone.utc) + timedelta(seconds=120)
        fresh.last_active = later

        idle = manager.idle_transient(60, now=later)
        assert [s.session_id for s in idle] == [stale.session_id]
        assert connection not in idle

    def test_touch_updates_activity(self) -> None:
        manager = _manager()
        session = manager.create()
        session.last_active = datetime(2020, 1, 1, tzinfo=timezone.utc)
        manager.touch(session)
        assert session.last_active.year > 2020
