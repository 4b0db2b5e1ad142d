"""Shared plumbing for tool handlers."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from commerce_mcp.commerce.errors import CommerceError

if TYPE_CHECKING:
    from commerce_mcp.commerce.stores import CartStore, Catalog, OrderStore
    from commerce_mcp.config import ServerSettings
    from commerce_mcp.protocol.session import Session

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any], "ToolContext"], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class ToolContext:
    """Everything a handler may touch for one call."""

    session: Session
    catalog: Catalog
    carts: CartStore
    orders: OrderStore
    settings: ServerSettings

    @property
    def cart_key(self) -> str:
        return self.session.cart_key


def declined(exc: CommerceError, **extra: Any) -> dict[str, Any]:
    """Payload for an operation the store refused (still a successful call)."""
    return {"success": False, "reason": exc.reason, "message": str(exc), **extra}


def reports_declines(handler: Handler) -> Handler:
    """Turn :class:`CommerceError` from *handler* into a ``success: false`` payload."""

    @functools.wraps(handler)
    async def wrapper(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        try:
            return await handler(arguments, context)
        except CommerceError as exc:
            logger.info("%s declined: %s", handler.__name__, exc)
            return declined(exc)

    return wrapper
