"""Built-in demo catalog and a loader for catalog files.

Catalog files are YAML (or JSON, which YAML parses too) holding either a
list of products or a mapping with a ``products`` key.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from commerce_mcp.commerce.models import Product, ProductVariant
from commerce_mcp.config import SettingsError


def default_products() -> list[Product]:
    """Return a fresh copy of the demo catalog."""
    return [
        Product(
            id="prod-001",
            name="Smart Watch Pro",
            description="Smart watch with voice assistant, heart-rate and sleep tracking",
            price=299.99,
            category="electronics",
            tags=["watch", "wearable", "smart", "fitness"],
            inventory=100,
            images=["https://example.com/images/watch.jpg"],
            variants=[
                ProductVariant(id="var-001", name="Black / 42mm", sku="SWP-BLK-42"),
                ProductVariant(id="var-002", name="White / 46mm", sku="SWP-WHT-46", price=319.99),
            ],
            rating=4.6,
            review_count=1284,
        ),
        Product(
            id="prod-002",
            name="Wireless Headphones Max",
            description="Noise-cancelling over-ear wireless headphones with adaptive sound",
            price=199.99,
            category="electronics",
            tags=["headphones", "wireless", "audio", "noise-cancelling"],
            inventory=50,
            images=["https://example.com/images/headphones.jpg"],
            variants=[
                ProductVariant(id="var-003", name="Black", sku="WHM-BLK"),
                ProductVariant(id="var-004", name="Blue", sku="WHM-BLU"),
            ],
            rating=4.4,
            review_count=862,
        ),
        Product(
            id="prod-003",
            name="UltraBook 14 Laptop",
            description="Lightweight 14-inch laptop for work and travel",
            price=899.00,
            category="computers",
            tags=["laptop", "notebook", "ultrabook"],
            inventory=25,
            images=["https://example.com/images/laptop.jpg"],
            variants=[
                ProductVariant(id="var-005", name="16GB / 512GB", sku="UB14-16-512"),
                ProductVariant(id="var-006", name="32GB / 1TB", sku="UB14-32-1T", price=1199.00),
            ],
            rating=4.5,
            review_count=311,
        ),
        Product(
            id="prod-004",
            name="Ergonomic Office Chair",
            description="Adjustable office chair with lumbar support",
            price=249.50,
            category="furniture",
            tags=["chair", "office", "ergonomic"],
            inventory=10,
            images=["https://example.com/images/chair.jpg"],
            rating=4.1,
            review_count=97,
        ),
        Product(
            id="prod-005",
            name="Insulated Water Bottle",
            description="Stainless steel bottle that keeps drinks cold for 24 hours",
            price=24.99,
            category="home",
            tags=["bottle", "outdoor", "kitchen"],
            inventory=200,
            images=["https://example.com/images/bottle.jpg"],
            rating=4.8,
            review_count=2048,
        ),
        Product(
            id="out-of-stock-prod",
            name="Limited Edition Sneakers",
            description="Collector sneakers from a sold-out drop",
            price=149.99,
            category="fashion",
            tags=["shoes", "sneakers", "limited"],
            inventory=0,
            images=["https://example.com/images/sneakers.jpg"],
            variants=[ProductVariant(id="var-007", name="EU 42", sku="LES-42")],
            rating=4.9,
            review_count=45,
        ),
    ]


def load_catalog(path: Path) -> list[Product]:
    """Load products from a YAML/JSON catalog file.

    Raises:
        SettingsError: If the file is unreadable or does not validate.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SettingsError(f"Cannot read catalog {path}: {exc}") from exc

    try:
        data: Any = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise SettingsError(f"Catalog parse error: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("products")
    if not isinstance(data, list):
        raise SettingsError("Catalog must be a list of products or a mapping with 'products'")

    try:
        return [Product.model_validate(item) for item in data]
    except ValidationError as exc:
        raise SettingsError(f"Invalid product in {path}: {exc}") from exc
