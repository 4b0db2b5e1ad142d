"""In-memory implementations of the collaborator protocols.

Suitable for testing and single-process deployments.  Every read returns an
independent copy, mimicking a real persistence layer, and each store guards
its read-modify-write sequences with an :class:`asyncio.Lock`.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone

from commerce_mcp.commerce.errors import (
    CartItemNotFoundError,
    EmptyCartError,
    InsufficientStockError,
    InvalidQuantityError,
    OrderNotFoundError,
    OrderStateError,
    ProductNotFoundError,
    VariantNotFoundError,
)
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
    SearchFilters,
)
from commerce_mcp.commerce.stores import Catalog  # noqa: TC001


def _score(product: Product, terms: list[str]) -> float:
    """Naive keyword relevance: name hits weigh most, description least."""
    name = product.name.lower()
    description = product.description.lower()
    category = product.category.lower()
    tags = [t.lower() for t in product.tags]
    score = 0.0
    for term in terms:
        if term in name:
            score += 3.0
        if any(term in tag for tag in tags):
            score += 2.0
        if term in category:
            score += 1.5
        if term in description:
            score += 1.0
    return score


class InMemoryCatalog:
    """Dict-backed :class:`Catalog`."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: dict[str, Product] = {}
        self._lock = asyncio.Lock()
        for product in products:
            if product.id in self._products:
                msg = f"Duplicate product id: {product.id}"
                raise ValueError(msg)
            self._products[product.id] = product.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._products)

    async def find(self, product_id: str) -> Product | None:
        product = self._products.get(product_id)
        return product.model_copy(deep=True) if product is not None else None

    async def search(self, query: str, filters: SearchFilters) -> list[Product]:
        terms = query.lower().split()
        scored: list[tuple[float, Product]] = []
        for product in self._products.values():
            if filters.category and product.category.lower() != filters.category.lower():
                continue
            if filters.min_price is not None and product.price < filters.min_price:
                continue
            if filters.max_price is not None and product.price > filters.max_price:
                continue
            score = _score(product, terms) if terms else 0.0
            if terms and score == 0:
                continue
            scored.append((score, product))

        descending = (filters.sort_order or ("desc" if filters.sort_by == "relevance" else "asc")) == "desc"
        if filters.sort_by == "price":
            scored.sort(key=lambda pair: pair[1].price, reverse=descending)
        elif filters.sort_by == "name":
            scored.sort(key=lambda pair: pair[1].name.lower(), reverse=descending)
        elif filters.sort_by == "rating":
            scored.sort(key=lambda pair: pair[1].rating, reverse=descending)
        else:
            scored.sort(key=lambda pair: pair[0], reverse=descending)

        results = [product.model_copy(deep=True) for _, product in scored]
        if filters.limit is not None:
            results = results[: filters.limit]
        return results

    async def adjust_inventory(self, product_id: str, delta: int) -> Product:
        async with self._lock:
            product = self._products.get(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            remaining = product.inventory + delta
            if remaining < 0:
                raise InsufficientStockError(product_id, requested=-delta, available=product.inventory)
            product.inventory = remaining
            return product.model_copy(deep=True)


class InMemoryCartStore:
    """Dict-backed :class:`CartStore`; prices are refreshed from the catalog on read."""

    def __init__(self, catalog: Catalog, *, currency: str = "USD") -> None:
        self._catalog = catalog
        self._currency = currency
        self._carts: dict[str, Cart] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Cart:
        async with self._lock:
            cart = self._cart(key)
            await self._reprice(cart)
            return cart.model_copy(deep=True)

    async def add_item(
        self, key: str, product_id: str, quantity: int, variant_id: str | None = None
    ) -> Cart:
        if quantity <= 0:
            raise InvalidQuantityError(quantity)

        async with self._lock:
            product = await self._catalog.find(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)

            cart = self._cart(key)
            in_cart = sum(i.quantity for i in cart.items if i.product_id == product_id)
            if in_cart + quantity > product.inventory:
                raise InsufficientStockError(
                    product_id, requested=in_cart + quantity, available=product.inventory
                )
            self._check_variant(product, variant_id)

            existing = cart.find(product_id, variant_id)
            if existing is not None:
                existing.quantity += quantity
            else:
                cart.items.append(
                    CartItem(
                        product_id=product_id,
                        variant_id=variant_id,
                        name=product.name,
                        price=product.unit_price(variant_id),
                        quantity=quantity,
                        image=product.images[0] if product.images else "",
                    )
                )
            self._touch(cart)
            await self._reprice(cart)
            return cart.model_copy(deep=True)

    async def update_quantity(
        self, key: str, product_id: str, quantity: int, variant_id: str | None = None
    ) -> Cart:
        """Set a line's quantity; zero removes the line."""
        if quantity < 0:
            raise InvalidQuantityError(quantity)

        async with self._lock:
            cart = self._cart(key)
            item = cart.find(product_id, variant_id)
            if item is None:
                raise CartItemNotFoundError(product_id, variant_id)

            if quantity == 0:
                cart.items.remove(item)
            else:
                product = await self._catalog.find(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                others = sum(
                    i.quantity for i in cart.items if i.product_id == product_id and i is not item
                )
                if others + quantity > product.inventory:
                    raise InsufficientStockError(
                        product_id, requested=others + quantity, available=product.inventory
                    )
                item.quantity = quantity
            self._touch(cart)
            await self._reprice(cart)
            return cart.model_copy(deep=True)

    async def remove_item(self, key: str, product_id: str, variant_id: str | None = None) -> Cart:
        async with self._lock:
            cart = self._cart(key)
            item = cart.find(product_id, variant_id)
            if item is None:
                raise CartItemNotFoundError(product_id, variant_id)
            cart.items.remove(item)
            self._touch(cart)
            await self._reprice(cart)
            return cart.model_copy(deep=True)

    async def clear(self, key: str) -> Cart:
        async with self._lock:
            cart = self._cart(key)
            cart.items.clear()
            self._touch(cart)
            return cart.model_copy(deep=True)

    async def remove_ordered(self, key: str, items: list[CartItem]) -> Cart:
        async with self._lock:
            cart = self._cart(key)
            for ordered in items:
                line = cart.find(ordered.product_id, ordered.variant_id)
                if line is None:
                    continue
                line.quantity -= ordered.quantity
                if line.quantity <= 0:
                    cart.items.remove(line)
            self._touch(cart)
            await self._reprice(cart)
            return cart.model_copy(deep=True)

    async def discard(self, key: str) -> None:
        async with self._lock:
            self._carts.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._carts

    def _cart(self, key: str) -> Cart:
        cart = self._carts.get(key)
        if cart is None:
            cart = Cart(key=key, currency=self._currency)
            self._carts[key] = cart
        return cart

    async def _reprice(self, cart: Cart) -> None:
        for item in cart.items:
            product = await self._catalog.find(item.product_id)
            if product is not None:
                item.price = product.unit_price(item.variant_id)
                item.name = product.name

    @staticmethod
    def _check_variant(product: Product, variant_id: str | None) -> None:
        if variant_id is not None and product.variant(variant_id) is None:
            raise VariantNotFoundError(product.id, variant_id)

    @staticmethod
    def _touch(cart: Cart) -> None:
        cart.updated_at = datetime.now(timezone.utc)


class InMemoryOrderStore:
    """Dict-backed :class:`OrderStore` that reserves inventory on creation."""

    def __init__(
        self,
        catalog: Catalog,
        *,
        pricing: PricingPolicy | None = None,
        currency: str = "USD",
    ) -> None:
        self._catalog = catalog
        self._pricing = pricing or PricingPolicy()
        self._currency = currency
        self._orders: dict[str, Order] = {}
        self._lock = asyncio.Lock()

    async def create(self, cart: Cart, shipping_address: Address, payment_method: PaymentMethod) -> Order:
        if not cart.items:
            raise EmptyCartError

        async with self._lock:
            requested: dict[str, int] = {}
            for item in cart.items:
                requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity
            for product_id, quantity in requested.items():
                product = await self._catalog.find(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                if quantity > product.inventory:
                    raise InsufficientStockError(product_id, requested=quantity, available=product.inventory)
            for product_id, quantity in requested.items():
                await self._catalog.adjust_inventory(product_id, -quantity)

            subtotal = cart.total
            shipping, tax, total = self._pricing.quote(subtotal)
            order = Order(
                id=f"ORD-{uuid.uuid4().hex[:12].upper()}",
                cart_key=cart.key,
                items=[item.model_copy() for item in cart.items],
                subtotal=subtotal,
                shipping=shipping,
                tax=tax,
                total=total,
                currency=self._currency,
                payment_method=payment_method,
                shipping_address=shipping_address,
            )
            self._orders[order.id] = order
            return order.model_copy(deep=True)

    async def get(self, order_id: str) -> Order | None:
        order = self._orders.get(order_id)
        return order.model_copy(deep=True) if order is not None else None

    async def pay(self, order_id: str) -> Order:
        """Simulated payment: a pending order becomes confirmed."""
        async with self._lock:
            order = self._require(order_id)
            if order.status is not OrderStatus.PENDING:
                raise OrderStateError(order_id, order.status.value, "paid")
            order.status = OrderStatus.CONFIRMED
            order.payment_status = PaymentStatus.COMPLETED
            order.updated_at = datetime.now(timezone.utc)
            return order.model_copy(deep=True)

    async def cancel(self, order_id: str) -> Order:
        async with self._lock:
            order = self._require(order_id)
            if order.status is not OrderStatus.PENDING:
                raise OrderStateError(order_id, order.status.value, "cancelled")
            for item in order.items:
                await self._catalog.adjust_inventory(item.product_id, item.quantity)
            order.status = OrderStatus.CANCELLED
            order.updated_at = datetime.now(timezone.utc)
            return order.model_copy(deep=True)

    async def list_for(self, cart_key: str) -> list[Order]:
        return [o.model_copy(deep=True) for o in self._orders.values() if o.cart_key == cart_key]

    def _require(self, order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order
