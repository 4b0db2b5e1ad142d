"""Catalog tools: ``search_products`` and ``get_product_details``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from commerce_mcp.commerce.models import SearchFilters
from commerce_mcp.protocol.errors import InvalidParamsError
from commerce_mcp.protocol.models import InputSchema, ToolDescriptor

if TYPE_CHECKING:
    from commerce_mcp.protocol.registry import SchemaRegistry
    from commerce_mcp.tools.base import ToolContext

DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 100

SEARCH_PRODUCTS = ToolDescriptor(
    name="search_products",
    description=(
        "Search the product catalog by keyword. An empty query lists every product. "
        "Supports price range, category, sorting and a result limit."
    ),
    input_schema=InputSchema(
        properties={
            "query": {"type": "string", "description": "Keywords; empty string means no filter."},
            "category": {"type": "string", "description": "Exact category name."},
            "minPrice": {"type": "number", "minimum": 0},
            "maxPrice": {"type": "number", "minimum": 0},
            "limit": {
                "type": "integer",
                "minimum": 1,
                "maximum": MAX_SEARCH_LIMIT,
                "default": DEFAULT_SEARCH_LIMIT,
            },
            "sortBy": {"type": "string", "enum": ["relevance", "price", "name", "rating"]},
            "sortOrder": {"type": "string", "enum": ["asc", "desc"]},
        },
        required=["query"],
    ),
)

GET_PRODUCT_DETAILS = ToolDescriptor(
    name="get_product_details",
    description="Get full details of a product, including variants and inventory.",
    input_schema=InputSchema(
        properties={"productId": {"type": "string", "minLength": 1}},
        required=["productId"],
    ),
)


async def search_products(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    query: str = arguments["query"]
    min_price = arguments.get("minPrice")
    max_price = arguments.get("maxPrice")
    if min_price is not None and max_price is not None and min_price > max_price:
        msg = "Invalid params: 'minPrice' must not exceed 'maxPrice'"
        raise InvalidParamsError(msg)

    filters = SearchFilters(
        category=arguments.get("category"),
        min_price=min_price,
        max_price=max_price,
        sort_by=arguments.get("sortBy", "relevance"),
        sort_order=arguments.get("sortOrder"),
        limit=arguments.get("limit", DEFAULT_SEARCH_LIMIT),
    )
    products = await context.catalog.search(query, filters)
    return {
        "products": [p.summary() for p in products],
        "total": len(products),
        "query": query,
    }


async def get_product_details(arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
    # An unknown product is a normal answer, not a protocol "not found".
    product_id: str = arguments["productId"]
    product = await context.catalog.find(product_id)
    if product is None:
        return {"found": False, "productId": product_id}
    return {"found": True, **product.to_wire()}


def register(registry: SchemaRegistry) -> None:
    registry.register_tool(SEARCH_PRODUCTS, search_products)
    registry.register_tool(GET_PRODUCT_DETAILS, get_product_details)
