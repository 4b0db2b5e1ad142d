"""Tests for the in-memory catalog, cart and order stores."""

from __future__ import annotations

import asyncio

import pytest

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
from commerce_mcp.commerce.memory import InMemoryCartStore, InMemoryCatalog, InMemoryOrderStore
from commerce_mcp.commerce.models import (
    Address,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    PricingPolicy,
    Product,
    SearchFilters,
)
from commerce_mcp.commerce.seed import default_products

ADDRESS = Address(name="A", street="1 Road", city="Town", state="ST", zip="00000", country="US")


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog(default_products())


@pytest.fixture
def carts(catalog: InMemoryCatalog) -> InMemoryCartStore:
    return InMemoryCartStore(catalog)


@pytest.fixture
def orders(catalog: InMemoryCatalog) -> InMemoryOrderStore:
    return InMemoryOrderStore(catalog, pricing=PricingPolicy(tax_rate=0.1, shipping_flat_rate=5.0))


class TestCatalog:
    async def test_find_returns_copy(self, catalog: InMemoryCatalog) -> None:
        product = await catalog.find("prod-001")
        assert product is not None
        product.inventory = 0
        again = await catalog.find("prod-001")
        assert again is not None
        assert again.inventory == 100

    async def test_find_unknown(self, catalog: InMemoryCatalog) -> None:
        assert await catalog.find("nope") is None

    async def test_keyword_search_ranks_name_hits_first(self, catalog: InMemoryCatalog) -> None:
        results = await catalog.search("wireless headphones", SearchFilters())
        assert results[0].id == "prod-002"

    async def test_empty_query_lists_everything(self, catalog: InMemoryCatalog) -> None:
        results = await catalog.search("", SearchFilters())
        assert len(results) == len(catalog)

    async def test_no_match(self, catalog: InMemoryCatalog) -> None:
        assert await catalog.search("submarine", SearchFilters()) == []

    async def test_price_and_category_filters(self, catalog: InMemoryCatalog) -> None:
        results = await catalog.search("", SearchFilters(category="Electronics", max_price=250))
        assert [p.id for p in results] == ["prod-002"]

    async def test_sort_by_price(self, catalog: InMemoryCatalog) -> None:
        results = await catalog.search("", SearchFilters(sort_by="price"))
        prices = [p.price for p in results]
        assert prices == sorted(prices)
        results = await catalog.search("", SearchFilters(sort_by="price", sort_order="desc"))
        assert results[0].id == "prod-003"

    async def test_limit(self, catalog: InMemoryCatalog) -> None:
        assert len(await catalog.search("", SearchFilters(limit=2))) == 2

    async def test_adjust_inventory(self, catalog: InMemoryCatalog) -> None:
        product = await catalog.adjust_inventory("prod-004", -3)
        assert product.inventory == 7
        with pytest.raises(InsufficientStockError):
            await catalog.adjust_inventory("prod-004", -8)
        with pytest.raises(ProductNotFoundError):
            await catalog.adjust_inventory("nope", 1)

    def test_duplicate_ids_rejected(self) -> None:
        product = Product(id="x", name="X", price=1)
        with pytest.raises(ValueError, match="Duplicate"):
            InMemoryCatalog([product, product])


class TestCartStore:
    async def test_new_cart_is_empty(self, carts: InMemoryCartStore) -> None:
        cart = await carts.get("k")
        assert cart.items == []
        assert cart.total == 0

    async def test_add_merges_lines(self, carts: InMemoryCartStore) -> None:
        await carts.add_item("k", "prod-005", 2)
        cart = await carts.add_item("k", "prod-005", 1)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3
        assert cart.total == round(24.99 * 3, 2)

    async def test_variant_price_override(self, carts: InMemoryCartStore) -> None:
        cart = await carts.add_item("k", "prod-001", 1, "var-002")
        assert cart.items[0].price == 319.99

    async def test_variants_are_separate_lines(self, carts: InMemoryCartStore) -> None:
        await carts.add_item("k", "prod-001", 1, "var-001")
        cart = await carts.add_item("k", "prod-001", 1, "var-002")
        assert len(cart.items) == 2
        assert cart.item_count == 2

    async def test_carts_are_isolated(self, carts: InMemoryCartStore) -> None:
        await carts.add_item("a", "prod-005", 1)
        assert (await carts.get("b")).items == []

    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_non_positive_quantity(self, carts: InMemoryCartStore, quantity: int) -> None:
        with pytest.raises(InvalidQuantityError):
            await carts.add_item("k", "prod-005", quantity)

    async def test_unknown_product(self, carts: InMemoryCartStore) -> None:
        with pytest.raises(ProductNotFoundError):
            await carts.add_item("k", "nope", 1)

    async def test_unknown_variant(self, carts: InMemoryCartStore) -> None:
        with pytest.raises(VariantNotFoundError):
            await carts.add_item("k", "prod-001", 1, "var-999")

    async def test_out_of_stock_checked_before_variant(self, carts: InMemoryCartStore) -> None:
        with pytest.raises(InsufficientStockError, match="out of stock"):
            await carts.add_item("k", "out-of-stock-prod", 1, "v")

    async def test_cannot_exceed_inventory(self, carts: InMemoryCartStore) -> None:
        await carts.add_item("k", "prod-004", 8)
        with pytest.raises(InsufficientStockError, match="only 10 available"):
            await carts.add_item("k", "prod-004", 3)

    async def test_update_and_remove(self, carts: InMemoryCartStore) -> None:
        await carts.add_item("k", "prod-005", 1)
        cart = await carts.update_quantity("k", "prod-005", 4)
        assert cart.items[0].quantity == 4
        cart = await carts.update_quantity("k", "prod-005", 0)
        assert cart.items == []
        with pytest.raises(CartItemNotFoundError):
            await carts.remove_item("k", "prod-005")

    async def test_update_negative(self, carts: InMemoryCartStore) -> None:
        with pytest.raises(InvalidQuantityError):
            await carts.update_quantity("k", "prod-005", -2)

    async def test_total_follows_current_price(
        self, catalog: InMemoryCatalog, carts: InMemoryCartStore
    ) -> None:
        await carts.add_item("k", "prod-005", 2)
        catalog._products["prod-005"].price = 10.0
        cart = await carts.get("k")
        assert cart.total == 20.0

    async def test_concurrent_adds_respect_stock(self, carts: InMemoryCartStore) -> None:
        results = await asyncio.gather(
            *[carts.add_item("k", "prod-004", 1) for _ in range(15)],
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(failures) == 5
        assert (await carts.get("k")).item_count == 10

    async def test_clear(self, carts: InMemoryCartStore) -> None:
        await carts.add_item("k", "prod-005", 1)
        cart = await carts.clear("k")
        assert cart.items == []

    async def test_remove_ordered_keeps_later_additions(self, carts: InMemoryCartStore) -> None:
        snapshot = await carts.add_item("k", "prod-005", 2)
        await carts.add_item("k", "prod-005", 1)
        await carts.add_item("k", "prod-004", 1)

        cart = await carts.remove_ordered("k", snapshot.items)
        assert [(i.product_id, i.quantity) for i in cart.items] == [("prod-005", 1), ("prod-004", 1)]

    async def test_remove_ordered_skips_vanished_lines(self, carts: InMemoryCartStore) -> None:
        snapshot = await carts.add_item("k", "prod-005", 2)
        await carts.remove_item("k", "prod-005")
        cart = await carts.remove_ordered("k", snapshot.items)
        assert cart.items == []

    async def test_discard(self, carts: InMemoryCartStore) -> None:
        await carts.add_item("k", "prod-005", 1)
        await carts.discard("k")
        assert "k" not in carts
        await carts.discard("k")
        assert (await carts.get("k")).items == []


class TestOrderStore:
    async def test_create_reserves_stock_and_prices(
        self, catalog: InMemoryCatalog, carts: InMemoryCartStore, orders: InMemoryOrderStore
    ) -> None:
        cart = await carts.add_item("k", "prod-004", 2)
        order = await orders.create(cart, ADDRESS, PaymentMethod.PAYPAL)
        assert order.id.startswith("ORD-")
        assert order.status is OrderStatus.PENDING
        assert order.subtotal == 499.0
        assert order.shipping == 5.0
        assert order.tax == 49.9
        assert order.total == 553.9
        assert order.cart_key == "k"
        product = await catalog.find("prod-004")
        assert product is not None
        assert product.inventory == 8

    async def test_empty_cart(self, carts: InMemoryCartStore, orders: InMemoryOrderStore) -> None:
        with pytest.raises(EmptyCartError):
            await orders.create(await carts.get("k"), ADDRESS, PaymentMethod.STRIPE)

    async def test_stock_rechecked_at_checkout(
        self, catalog: InMemoryCatalog, carts: InMemoryCartStore, orders: InMemoryOrderStore
    ) -> None:
        cart = await carts.add_item("k", "prod-004", 5)
        await catalog.adjust_inventory("prod-004", -8)
        with pytest.raises(InsufficientStockError):
            await orders.create(cart, ADDRESS, PaymentMethod.STRIPE)

    async def test_pay_then_cancel_rejected(
        self, carts: InMemoryCartStore, orders: InMemoryOrderStore
    ) -> None:
        order = await orders.create(await carts.add_item("k", "prod-005", 1), ADDRESS, PaymentMethod.STRIPE)
        paid = await orders.pay(order.id)
        assert paid.status is OrderStatus.CONFIRMED
        assert paid.payment_status is PaymentStatus.COMPLETED
        with pytest.raises(OrderStateError, match="cannot be cancelled"):
            await orders.cancel(order.id)
        with pytest.raises(OrderStateError, match="cannot be paid"):
            await orders.pay(order.id)

    async def test_cancel_releases_stock(
        self, catalog: InMemoryCatalog, carts: InMemoryCartStore, orders: InMemoryOrderStore
    ) -> None:
        order = await orders.create(await carts.add_item("k", "prod-004", 4), ADDRESS, PaymentMethod.STRIPE)
        cancelled = await orders.cancel(order.id)
        assert cancelled.status is OrderStatus.CANCELLED
        product = await catalog.find("prod-004")
        assert product is not None
        assert product.inventory == 10

    async def test_unknown_order(self, orders: InMemoryOrderStore) -> None:
        assert await orders.get("ORD-NOPE") is None
        with pytest.raises(OrderNotFoundError):
            await orders.pay("ORD-NOPE")

    async def test_list_for(self, carts: InMemoryCartStore, orders: InMemoryOrderStore) -> None:
        await orders.create(await carts.add_item("a", "prod-005", 1), ADDRESS, PaymentMethod.STRIPE)
        await orders.create(await carts.add_item("b", "prod-005", 1), ADDRESS, PaymentMethod.STRIPE)
        assert len(await orders.list_for("a")) == 1


class TestPricingPolicy:
    def test_free_shipping_threshold(self) -> None:
        policy = PricingPolicy(tax_rate=0, shipping_flat_rate=10, free_shipping_threshold=100)
        assert policy.quote(150) == (0.0, 0.0, 150.0)
        assert policy.quote(50) == (10, 0.0, 60.0)
