"""CommerceServer — wires settings, stores, registry, sessions and dispatcher.

Transports only talk to :class:`CommerceServer`: they open a session per
connection, hand raw payloads to :meth:`CommerceServer.handle`, and close
the session when the connection ends.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from commerce_mcp.commerce.memory import InMemoryCartStore, InMemoryCatalog, InMemoryOrderStore
from commerce_mcp.commerce.seed import default_products, load_catalog
from commerce_mcp.config import ServerSettings
from commerce_mcp.prompts import register_prompts
from commerce_mcp.protocol.dispatcher import DispatchOutcome, Dispatcher
from commerce_mcp.protocol.models import ServerInfo
from commerce_mcp.protocol.registry import SchemaRegistry
from commerce_mcp.protocol.session import Session, SessionManager
from commerce_mcp.protocol.validator import RequestValidator
from commerce_mcp.resources import register_resources
from commerce_mcp.tools import ToolContext, register_tools

if TYPE_CHECKING:
    from commerce_mcp.commerce.stores import CartStore, Catalog, OrderStore

logger = logging.getLogger(__name__)


def build_registry() -> SchemaRegistry:
    """Register every built-in tool, resource and prompt, then seal."""
    registry = SchemaRegistry()
    register_tools(registry)
    register_resources(registry)
    register_prompts(registry)
    registry.seal()
    return registry


class CommerceServer:
    """Transport-agnostic server facade.

    Usage::

        server = build_server()
        session = server.open_session()
        outcome = await server.handle(b'{"jsonrpc":"2.0","method":"tools/list","id":1}', session)
        await server.close_session(session.session_id)
    """

    def __init__(
        self,
        settings: ServerSettings,
        *,
        catalog: Catalog,
        carts: CartStore,
        orders: OrderStore,
        registry: SchemaRegistry | None = None,
    ) -> None:
        self.settings = settings
        self.catalog = catalog
        self.carts = carts
        self.orders = orders
        self.registry = registry or build_registry()
        self.sessions = SessionManager(
            ServerInfo(name=settings.name, version=settings.version),
            supported_versions=tuple(settings.protocol_versions),
        )
        self.dispatcher = Dispatcher(
            self.registry,
            self.sessions,
            context_factory=self._make_context,
            validator=RequestValidator(
                allow_batch=settings.allow_batch,
                max_batch_size=settings.max_batch_size,
            ),
            require_initialize=settings.require_initialize,
        )

    def open_session(self, session_id: str | None = None, *, transient: bool = False) -> Session:
        return self.sessions.create(session_id, transient=transient)

    async def close_session(self, session_id: str) -> None:
        """Destroy the session and discard the cart it owns."""
        session = self.sessions.get(session_id)
        if session is None:
            return
        self.sessions.destroy(session_id)
        if session.cart_key == session.session_id:
            await self.carts.discard(session.cart_key)

    async def expire_idle_sessions(self, max_idle: float) -> int:
        """Close transient sessions idle for longer than *max_idle* seconds."""
        expired = self.sessions.idle_transient(max_idle)
        for session in expired:
            logger.info("Session %s expired after %.0fs idle", session.session_id, max_idle)
            await self.close_session(session.session_id)
        return len(expired)

    async def handle(self, raw: bytes | str | Any, session: Session) -> DispatchOutcome:
        self.sessions.touch(session)
        return await self.dispatcher.handle(raw, session)

    def _make_context(self, session: Session) -> ToolContext:
        return ToolContext(
            session=session,
            catalog=self.catalog,
            carts=self.carts,
            orders=self.orders,
            settings=self.settings,
        )


def build_server(settings: ServerSettings | None = None) -> CommerceServer:
    """Create a server backed by the in-memory stores.

    The catalog comes from ``settings.catalog_path`` when set, otherwise
    from the built-in demo products.
    """
    settings = settings or ServerSettings()
    products = load_catalog(settings.catalog_path) if settings.catalog_path else default_products()
    catalog = InMemoryCatalog(products)
    carts = InMemoryCartStore(catalog, currency=settings.currency)
    orders = InMemoryOrderStore(catalog, pricing=settings.pricing, currency=settings.currency)
    logger.info("Loaded %d products into the catalog", len(catalog))
    return CommerceServer(settings, catalog=catalog, carts=carts, orders=orders)
