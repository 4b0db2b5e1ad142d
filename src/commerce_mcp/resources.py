"""Read-only resources addressed by URI scheme.

======================  ==========================================
``products://{id}``     one product with variants and inventory
``categories://{name}`` products in a category
``cart://{key}``        a cart; ``cart://current`` is the caller's
``orders://{id}``       an order placed from the caller's session
======================  ==========================================

Readers return ``None`` for anything that does not exist; the dispatcher
turns that into a "not found" error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from commerce_mcp.commerce.models import SearchFilters
from commerce_mcp.protocol.models import ResourceDescriptor

if TYPE_CHECKING:
    from commerce_mcp.protocol.registry import SchemaRegistry
    from commerce_mcp.tools.base import ToolContext

PRODUCT_RESOURCE = ResourceDescriptor(
    name="product",
    uri_template="products://{productId}",
    description="A catalog product with variants, price and inventory.",
)
CATEGORY_RESOURCE = ResourceDescriptor(
    name="category",
    uri_template="categories://{category}",
    description="All products in a category.",
)
CART_RESOURCE = ResourceDescriptor(
    name="cart",
    uri_template="cart://{cartKey}",
    description="The caller's cart; use cart://current.",
)
ORDER_RESOURCE = ResourceDescriptor(
    name="order",
    uri_template="orders://{orderId}",
    description="An order placed from the current session.",
)


async def read_product(path: str, context: ToolContext) -> dict[str, Any] | None:
    product = await context.catalog.find(path)
    return product.to_wire() if product is not None else None


async def read_category(path: str, context: ToolContext) -> dict[str, Any] | None:
    if not path:
        return None
    products = await context.catalog.search("", SearchFilters(category=path))
    if not products:
        return None
    return {"category": path, "products": [p.summary() for p in products]}


async def read_cart(path: str, context: ToolContext) -> dict[str, Any] | None:
    key = context.cart_key if path in ("", "current") else path
    if key != context.cart_key:
        return None
    cart = await context.carts.get(key)
    return cart.to_wire()


async def read_order(path: str, context: ToolContext) -> dict[str, Any] | None:
    order = await context.orders.get(path)
    if order is None or order.cart_key != context.cart_key:
        return None
    return order.to_wire()


def register_resources(registry: SchemaRegistry) -> None:
    registry.register_resource(PRODUCT_RESOURCE, read_product)
    registry.register_resource(CATEGORY_RESOURCE, read_category)
    registry.register_resource(CART_RESOURCE, read_cart)
    registry.register_resource(ORDER_RESOURCE, read_order)
