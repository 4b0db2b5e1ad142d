"""Domain errors raised by the catalog, cart and order stores.

These are *expected* outcomes.  Tool handlers report them inside a
successful protocol response (``success: false``) instead of turning them
into JSON-RPC errors.
"""

from __future__ import annotations


class CommerceError(Exception):
    """Base error for all declined commerce operations."""

    reason = "declined"


class ProductNotFoundError(CommerceError):
    reason = "product_not_found"

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class VariantNotFoundError(CommerceError):
    reason = "variant_not_found"

    def __init__(self, product_id: str, variant_id: str) -> None:
        self.product_id = product_id
        self.variant_id = variant_id
        super().__init__(f"Variant {variant_id} not found for product {product_id}")


class InvalidQuantityError(CommerceError):
    reason = "invalid_quantity"

    def __init__(self, quantity: int) -> None:
        self.quantity = quantity
        super().__init__(f"Quantity must be a positive integer, got {quantity}")


class InsufficientStockError(CommerceError):
    reason = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        if available <= 0:
            msg = f"Product {product_id} is out of stock"
        else:
            msg = f"Insufficient stock for {product_id}: requested {requested}, only {available} available"
        super().__init__(msg)


class CartItemNotFoundError(CommerceError):
    reason = "cart_item_not_found"

    def __init__(self, product_id: str, variant_id: str | None = None) -> None:
        self.product_id = product_id
        self.variant_id = variant_id
        suffix = f" (variant {variant_id})" if variant_id else ""
        super().__init__(f"Product {product_id}{suffix} is not in the cart")


class EmptyCartError(CommerceError):
    reason = "empty_cart"

    def __init__(self) -> None:
        super().__init__("Cart is empty")


class OrderNotFoundError(CommerceError):
    reason = "order_not_found"

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class OrderStateError(CommerceError):
    """The order's status does not allow the requested transition."""

    reason = "invalid_order_state"

    def __init__(self, order_id: str, status: str, action: str) -> None:
        self.order_id = order_id
        self.status = status
        self.action = action
        super().__init__(f"Order {order_id} cannot be {action} in status '{status}'")
