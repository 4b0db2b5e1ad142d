"""Cart tools.

Declined operations (bad quantity, unknown product, not enough stock) come
back as ``success: false`` with a readable ``message``; callers tell
"protocol failed" from "operation declined" this way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from commerce_mcp.protocol.models import InputSchema, ToolDescriptor
from commerce_mcp.tools.base import reports_declines

if TYPE_CHECKING:
    from commerce_mcp.commerce.models import Cart
    from commerce_mcp.protocol.registry import SchemaRegistry
    from commerce_mcp.tools.base import ToolContext

_PRODUCT_ID = {"type": "string", "minLength": 1}
_VARIANT_ID = {"type": "string", "description": "Variant to buy; omit for the base product."}

ADD_TO_CART = ToolDescriptor(
    name="add_to_cart",
    description="Add a product (optionally a specific variant) to the current cart.",
    input_schema=InputSchema(
        properties={
            "productId": _PRODUCT_ID,
            "variantId": _VARIANT_ID,
            "quantity": {"type": "integer", "description": "Units to add; must be positive."},
        },
        required=["productId", "quantity"],
    ),
)

GET_CART = ToolDescriptor(
    name="get_cart",
    description="Show the current cart with line items and a total recomputed from current prices.",
    input_schema=InputSchema(),
)

UPDATE_CART_ITEM = ToolDescriptor(
    name="update_cart_item",
    description="Set the quantity of a cart line; quantity 0 removes it.",
    input_schema=InputSchema(
        properties={
            "productId": _PRODUCT_ID,
            "variantId": _VARIANT_ID,
            "quantity": {"type": "integer"},
        },
        required=["productId", "quantity"],
    ),
)

REMOVE_FROM_CART = ToolDescriptor(
    name="remove_from_cart",
    description="Remove a line from the current cart.",
    input_schema=InputSchema(
        properties={"productId": _PRODUCT_ID, "variantId": _VARIANT_ID},
        required=["productId"],
    ),
)

CLEAR_CART = ToolDescriptor(
    name="clear_cart",
    description="Remove every line from the current cart.",
    input_schema=InputSchema(),
)


def _cart_payload(cart: Cart, message: str, **extra: Any) -> dict[str, Any]:
    return {
        "success": True,
        "message": message,
        **extra,
        "cart": cart.to_wire(),
        "cartTotal": cart.total,
    }


@reports_declines
async def add_to_cart(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    product_id: str = arguments["productId"]
    variant_id: str | None = arguments.get("variantId")
    quantity: int = arguments["quantity"]

    cart = await context.carts.add_item(context.cart_key, product_id, quantity, variant_id)
    item = cart.find(product_id, variant_id)
    name = item.name if item is not None else product_id
    return _cart_payload(
        cart,
        f"{quantity} x {name} added to cart",
        cartItem=item.model_dump(by_alias=True) if item is not None else None,
    )


async def get_cart(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    cart = await context.carts.get(context.cart_key)
    return cart.to_wire()


@reports_declines
async def update_cart_item(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    product_id: str = arguments["productId"]
    cart = await context.carts.update_quantity(
        context.cart_key, product_id, arguments["quantity"], arguments.get("variantId")
    )
    return _cart_payload(cart, f"Quantity of {product_id} set to {arguments['quantity']}")


@reports_declines
async def remove_from_cart(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    product_id: str = arguments["productId"]
    cart = await context.carts.remove_item(context.cart_key, product_id, arguments.get("variantId"))
    return _cart_payload(cart, f"{product_id} removed from cart")


async def clear_cart(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    cart = await context.carts.clear(context.cart_key)
    return _cart_payload(cart, "Cart cleared")


def register(registry: SchemaRegistry) -> None:
    registry.register_tool(ADD_TO_CART, add_to_cart)
    registry.register_tool(GET_CART, get_cart)
    registry.register_tool(UPDATE_CART_ITEM, update_cart_item)
    registry.register_tool(REMOVE_FROM_CART, remove_from_cart)
    registry.register_tool(CLEAR_CART, clear_cart)
