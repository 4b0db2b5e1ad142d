"""Order tools: checkout, status lookup, history, simulated payment and
cancellation.

Orders are scoped to the caller's cart key; another session's order id
reads as unknown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from commerce_mcp.commerce.errors import OrderNotFoundError
from commerce_mcp.commerce.models import Address, OrderStatus, PaymentMethod
from commerce_mcp.protocol.models import InputSchema, ToolDescriptor
from commerce_mcp.tools.base import reports_declines

if TYPE_CHECKING:
    from commerce_mcp.commerce.models import Order
    from commerce_mcp.protocol.registry import SchemaRegistry
    from commerce_mcp.tools.base import ToolContext

_ADDRESS_FIELDS = ("name", "street", "city", "state", "zip", "country")
_ORDER_ID = {"type": "string", "minLength": 1}

CHECKOUT = ToolDescriptor(
    name="checkout",
    description=(
        "Place an order for everything in the current cart. Totals are recomputed "
        "server-side; the new order is pending until paid."
    ),
    input_schema=InputSchema(
        properties={
            "shippingAddress": {
                "type": "object",
                "properties": {field: {"type": "string", "minLength": 1} for field in _ADDRESS_FIELDS},
                "required": list(_ADDRESS_FIELDS),
            },
            "paymentMethod": {"type": "string", "enum": [m.value for m in PaymentMethod]},
        },
        required=["shippingAddress"],
    ),
)

GET_ORDER_STATUS = ToolDescriptor(
    name="get_order_status",
    description="Look up an order placed from the current session.",
    input_schema=InputSchema(properties={"orderId": _ORDER_ID}, required=["orderId"]),
)

GET_ORDER_HISTORY = ToolDescriptor(
    name="get_order_history",
    description="List orders placed from the current session, newest first.",
    input_schema=InputSchema(
        properties={"status": {"type": "string", "enum": [s.value for s in OrderStatus]}},
    ),
)

PAY_ORDER = ToolDescriptor(
    name="pay_order",
    description="Pay for a pending order (simulated payment).",
    input_schema=InputSchema(properties={"orderId": _ORDER_ID}, required=["orderId"]),
)

CANCEL_ORDER = ToolDescriptor(
    name="cancel_order",
    description="Cancel an order that is still pending; reserved stock is released.",
    input_schema=InputSchema(properties={"orderId": _ORDER_ID}, required=["orderId"]),
)


async def _owned_order(context: ToolContext, order_id: str) -> Order:
    order = await context.orders.get(order_id)
    if order is None or order.cart_key != context.cart_key:
        raise OrderNotFoundError(order_id)
    return order


@reports_declines
async def checkout(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    address = Address.model_validate(arguments["shippingAddress"])
    method = PaymentMethod(arguments.get("paymentMethod", PaymentMethod.STRIPE.value))

    cart = await context.carts.get(context.cart_key)
    order = await context.orders.create(cart, address, method)
    await context.carts.remove_ordered(context.cart_key, order.items)

    return {
        "success": True,
        "orderId": order.id,
        "status": order.status.value,
        "subtotal": order.subtotal,
        "shipping": order.shipping,
        "tax": order.tax,
        "total": order.total,
        "currency": order.currency,
        "paymentMethod": order.payment_method.value,
        "paymentUrl": f"/orders/{order.id}/pay" if method is PaymentMethod.STRIPE else None,
        "message": f"Created order {order.id} for {order.total:.2f} {order.currency}; awaiting payment",
    }


async def get_order_status(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    order_id: str = arguments["orderId"]
    order = await context.orders.get(order_id)
    if order is None or order.cart_key != context.cart_key:
        return {"found": False, "orderId": order_id}
    return {"found": True, "order": order.to_wire()}


async def get_order_history(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    orders = await context.orders.list_for(context.cart_key)
    status = arguments.get("status")
    if status is not None:
        orders = [o for o in orders if o.status.value == status]
    orders = sorted(reversed(orders), key=lambda o: o.created_at, reverse=True)
    return {
        "orders": [
            {
                "orderId": o.id,
                "status": o.status.value,
                "paymentStatus": o.payment_status.value,
                "total": o.total,
                "currency": o.currency,
                "itemCount": sum(item.quantity for item in o.items),
                "createdAt": o.created_at.isoformat(),
            }
            for o in orders
        ],
        "total": len(orders),
    }


@reports_declines
async def pay_order(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    order = await _owned_order(context, arguments["orderId"])
    paid = await context.orders.pay(order.id)
    return {
        "success": True,
        "orderId": paid.id,
        "status": paid.status.value,
        "paymentStatus": paid.payment_status.value,
        "message": f"Payment received; order {paid.id} is {OrderStatus.CONFIRMED.value}",
    }


@reports_declines
async def cancel_order(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    order = await _owned_order(context, arguments["orderId"])
    cancelled = await context.orders.cancel(order.id)
    return {
        "success": True,
        "orderId": cancelled.id,
        "status": cancelled.status.value,
        "message": f"Order {cancelled.id} cancelled",
    }


def register(registry: SchemaRegistry) -> None:
    registry.register_tool(CHECKOUT, checkout)
    registry.register_tool(GET_ORDER_STATUS, get_order_status)
    registry.register_tool(GET_ORDER_HISTORY, get_order_history)
    registry.register_tool(PAY_ORDER, pay_order)
    registry.register_tool(CANCEL_ORDER, cancel_order)
