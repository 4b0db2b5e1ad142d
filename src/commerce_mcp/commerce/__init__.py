"""Commerce collaborators — catalog, carts and orders behind async protocols."""

from commerce_mcp.commerce.errors import (
    CartItemNotFoundError,
    CommerceError,
    EmptyCartError,
    InsufficientStockError,
    InvalidQuantityError,
    OrderNotFoundError,
    OrderStateError,
    ProductNotFoundError,
    VariantNotFoundError,
)
from commerce_mcp.commerce.memory import InMemoryCartStore, InMemoryCatalog, InMemoryOrderStore
from commerce_mcp.commerce.models import (
    Address,
    Cart,
    CartItem,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    PricingPolicy,
    Product,
    ProductVariant,
    SearchFilters,
)
from commerce_mcp.commerce.stores import CartStore, Catalog, OrderStore

__all__ = [
    "Address",
    "Cart",
    "CartItem",
    "CartItemNotFoundError",
    "CartStore",
    "Catalog",
    "CommerceError",
    "EmptyCartError",
    "InMemoryCartStore",
    "InMemoryCatalog",
    "InMemoryOrderStore",
    "InsufficientStockError",
    "InvalidQuantityError",
    "Order",
    "OrderNotFoundError",
    "OrderStateError",
    "OrderStatus",
    "OrderStore",
    "PaymentMethod",
    "PaymentStatus",
    "PricingPolicy",
    "Product",
    "ProductNotFoundError",
    "ProductVariant",
    "SearchFilters",
    "VariantNotFoundError",
]
