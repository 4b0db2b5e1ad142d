"""Collaborator protocols consumed by the tool handlers.

The protocol layer only talks to these interfaces; storage strategy
(in-memory, relational, key-value) is chosen at wiring time.  Implementations
own their concurrency guarantees and must recompute cart totals from current
line-item prices rather than trusting stored totals.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from commerce_mcp.commerce.models import (
        Address,
        Cart,
        CartItem,
        Order,
        PaymentMethod,
        Product,
        SearchFilters,
    )


class Catalog(Protocol):
    """Read access to products plus inventory reservation."""

    async def find(self, product_id: str) -> Product | None:
        """Return the product, or ``None`` if it does not exist."""
        ...

    async def search(self, query: str, filters: SearchFilters) -> list[Product]:
        """Return matching products; an empty query matches everything."""
        ...

    async def adjust_inventory(self, product_id: str, delta: int) -> Product:
        """Add *delta* (negative to reserve) to the product's inventory.

        Raises:
            ProductNotFoundError: Unknown product.
            InsufficientStockError: The result would be negative.
        """
        ...


class CartStore(Protocol):
    """Per-session carts keyed by an opaque cart key."""

    async def get(self, key: str) -> Cart: ...

    async def add_item(
        self, key: str, product_id: str, quantity: int, variant_id: str | None = None
    ) -> Cart: ...

    async def update_quantity(
        self, key: str, product_id: str, quantity: int, variant_id: str | None = None
    ) -> Cart: ...

    async def remove_item(self, key: str, product_id: str, variant_id: str | None = None) -> Cart: ...

    async def clear(self, key: str) -> Cart: ...

    async def remove_ordered(self, key: str, items: list[CartItem]) -> Cart:
        """Subtract ordered quantities, leaving lines added since the snapshot."""
        ...

    async def discard(self, key: str) -> None:
        """Forget the cart entirely (no-op if absent)."""
        ...


class OrderStore(Protocol):
    """Order creation and status transitions."""

    async def create(self, cart: Cart, shipping_address: Address, payment_method: PaymentMethod) -> Order:
        """Create a pending order from a cart snapshot.

        Raises:
            EmptyCartError: The cart has no items.
            InsufficientStockError: A line exceeds current inventory.
        """
        ...

    async def get(self, order_id: str) -> Order | None: ...

    async def pay(self, order_id: str) -> Order: ...

    async def cancel(self, order_id: str) -> Order:
        """Cancel a pending order; any other status raises ``OrderStateError``."""
        ...

    async def list_for(self, cart_key: str) -> list[Order]: ...
