"""Domain models for the catalog, carts and orders."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _money(value: float) -> float:
    return round(value, 2)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ProductVariant(BaseModel):
    """A purchasable variant; ``price`` overrides the product price when set."""

    id: str
    name: str
    sku: str = ""
    price: float | None = Field(default=None, ge=0)


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str = ""
    price: float = Field(ge=0)
    currency: str = "USD"
    category: str = ""
    tags: list[str] = Field(default_factory=list)
    inventory: int = Field(default=0, ge=0)
    images: list[str] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0, alias="reviewCount")

    @property
    def in_stock(self) -> bool:
        return self.inventory > 0

    def variant(self, variant_id: str) -> ProductVariant | None:
        return next((v for v in self.variants if v.id == variant_id), None)

    def unit_price(self, variant_id: str | None = None) -> float:
        """Current price of the product, or of *variant_id* if it overrides it."""
        if variant_id is not None:
            variant = self.variant(variant_id)
            if variant is not None and variant.price is not None:
                return variant.price
        return self.price

    def to_wire(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True)
        data["inStock"] = self.in_stock
        return data

    def summary(self) -> dict[str, Any]:
        """Compact shape used in search results."""
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "currency": self.currency,
            "category": self.category,
            "rating": self.rating,
            "inventory": self.inventory,
            "inStock": self.in_stock,
        }


class SearchFilters(BaseModel):
    """Catalog search filters and ordering."""

    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    sort_by: Literal["relevance", "price", "name", "rating"] = "relevance"
    sort_order: Literal["asc", "desc"] | None = None
    limit: int | None = Field(default=None, ge=1)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


class CartItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    variant_id: str | None = Field(default=None, alias="variantId")
    name: str
    price: float
    quantity: int = Field(ge=1)
    image: str = ""

    @property
    def line_total(self) -> float:
        return _money(self.price * self.quantity)

    def matches(self, product_id: str, variant_id: str | None) -> bool:
        return self.product_id == product_id and self.variant_id == variant_id


class Cart(BaseModel):
    key: str
    items: list[CartItem] = Field(default_factory=list)
    currency: str = "USD"
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def total(self) -> float:
        """Sum of price x quantity over the current line items."""
        return _money(sum(item.price * item.quantity for item in self.items))

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find(self, product_id: str, variant_id: str | None = None) -> CartItem | None:
        return next((i for i in self.items if i.matches(product_id, variant_id)), None)

    def to_wire(self) -> dict[str, Any]:
        return {
            "items": [
                {**item.model_dump(by_alias=True), "lineTotal": item.line_total}
                for item in self.items
            ],
            "total": self.total,
            "currency": self.currency,
            "itemCount": self.item_count,
        }


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"


class Address(BaseModel):
    name: str = Field(min_length=1)
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip: str = Field(min_length=1)
    country: str = Field(min_length=1)


class PricingPolicy(BaseModel):
    """Shipping and tax rules applied when an order is created."""

    tax_rate: float = Field(default=0.08, ge=0)
    shipping_flat_rate: float = Field(default=10.0, ge=0)
    free_shipping_threshold: float | None = Field(default=None, ge=0)

    def quote(self, subtotal: float) -> tuple[float, float, float]:
        """Return ``(shipping, tax, total)`` for *subtotal*."""
        free = self.free_shipping_threshold is not None and subtotal >= self.free_shipping_threshold
        shipping = 0.0 if free else self.shipping_flat_rate
        tax = _money(subtotal * self.tax_rate)
        return shipping, tax, _money(subtotal + shipping + tax)


class Order(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    cart_key: str = Field(alias="cartKey")
    items: list[CartItem]
    subtotal: float
    shipping: float
    tax: float
    total: float
    currency: str = "USD"
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING, alias="paymentStatus")
    payment_method: PaymentMethod = Field(default=PaymentMethod.STRIPE, alias="paymentMethod")
    shipping_address: Address = Field(alias="shippingAddress")
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=_utcnow, alias="updatedAt")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
