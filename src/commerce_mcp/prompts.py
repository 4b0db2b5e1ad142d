"""Prompt templates.

Rendering is plain :class:`string.Template` substitution (``$name`` /
``${name}``), so the same arguments always produce the same messages.
"""

from __future__ import annotations

from string import Template
from typing import TYPE_CHECKING

from commerce_mcp.protocol.models import PromptArgument, PromptDescriptor, PromptMessage, TextContent

if TYPE_CHECKING:
    from commerce_mcp.protocol.registry import SchemaRegistry

SHOPPING_ASSISTANT = PromptDescriptor(
    name="shopping_assistant",
    description="Help a shopper find and buy products that match their request.",
    arguments=[
        PromptArgument(name="userQuery", description="What the shopper is looking for.", required=True),
        PromptArgument(name="budget", description="Optional spending limit, e.g. '1000 USD'."),
    ],
)

PRODUCT_COMPARISON = PromptDescriptor(
    name="product_comparison",
    description="Compare several products side by side.",
    arguments=[
        PromptArgument(
            name="productIds",
            description="Comma-separated product ids to compare.",
            required=True,
        ),
    ],
)

ORDER_SUPPORT = PromptDescriptor(
    name="order_support",
    description="Assist with a question or problem about an existing order.",
    arguments=[
        PromptArgument(name="orderId", description="The order in question.", required=True),
        PromptArgument(name="issue", description="What went wrong, in the shopper's words."),
    ],
)

_SHOPPING_TEMPLATE = Template(
    "You are a shopping assistant for an online store. "
    "Use search_products to find candidates, get_product_details to check variants "
    "and stock, and add_to_cart only when the shopper agrees.\n\n"
    "Shopper request: $userQuery\n"
    "Budget: $budget"
)

_COMPARISON_TEMPLATE = Template(
    "Compare the following products: $products.\n"
    "Read each one with get_product_details (or the products:// resource) and "
    "summarise price, rating, variants and availability in a table, then recommend one."
)

_ORDER_SUPPORT_TEMPLATE = Template(
    "A shopper needs help with order $orderId.\n"
    "Issue: $issue\n"
    "Check the order with get_order_status before answering. Pending orders can be "
    "cancelled with cancel_order; other orders cannot."
)

_ORDER_SUPPORT_REPLY = Template("I'll look up order $orderId and check its current status first.")


def _text(role: str, text: str) -> PromptMessage:
    return PromptMessage(role=role, content=TextContent(text=text))  # type: ignore[arg-type]


def render_shopping_assistant(arguments: dict[str, str]) -> list[PromptMessage]:
    text = _SHOPPING_TEMPLATE.substitute(
        userQuery=arguments["userQuery"],
        budget=arguments.get("budget") or "not specified",
    )
    return [_text("user", text)]


def render_product_comparison(arguments: dict[str, str]) -> list[PromptMessage]:
    ids = [part.strip() for part in arguments["productIds"].split(",") if part.strip()]
    return [_text("user", _COMPARISON_TEMPLATE.substitute(products=", ".join(ids)))]


def render_order_support(arguments: dict[str, str]) -> list[PromptMessage]:
    order_id = arguments["orderId"]
    return [
        _text(
            "user",
            _ORDER_SUPPORT_TEMPLATE.substitute(
                orderId=order_id,
                issue=arguments.get("issue") or "not described",
            ),
        ),
        _text("assistant", _ORDER_SUPPORT_REPLY.substitute(orderId=order_id)),
    ]


def register_prompts(registry: SchemaRegistry) -> None:
    registry.register_prompt(SHOPPING_ASSISTANT, render_shopping_assistant)
    registry.register_prompt(PRODUCT_COMPARISON, render_product_comparison)
    registry.register_prompt(ORDER_SUPPORT, render_order_support)
