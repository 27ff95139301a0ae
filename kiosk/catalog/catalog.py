"""
==============================================================================
Product Lookup Module
==============================================================================

Static code -> product lookup used when dispatching detections.

JSON Structure:
--------------
{
  "8901030875614": {"name": "Biscuits", "price": 45},
  "8901063010031": {"name": "Marie Gold", "price": 30}
}

Codes absent from the table resolve to ``{name: code, price: 0}``.

==============================================================================
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import ValidationError

from .models import Product


# Module logger
logger = logging.getLogger(__name__)


class ProductCatalog:
    """
    Product lookup table keyed by scanned code.

    Attributes:
        products: List of all known products

    Example:
        >>> catalog = ProductCatalog.from_mapping({"123": {"name": "Tea", "price": 20}})
        >>> catalog.resolve("123").name
        'Tea'
        >>> catalog.resolve("999").name
        '999'
    """

    def __init__(self, products_file: Optional[Path] = None) -> None:
        """
        Initialize catalog, loading the JSON file when given.

        Args:
            products_file: Path to products.json (None for an empty table)
        """
        self._products_file = products_file
        self._by_code: Dict[str, Product] = {}

        if products_file is not None:
            self._load()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping]) -> "ProductCatalog":
        """Build a catalog from an in-memory mapping."""
        catalog = cls()
        catalog._parse(data)
        return catalog

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def products(self) -> List[Product]:
        """Get all products."""
        return list(self._by_code.values())

    # =========================================================================
    # LOADING
    # =========================================================================

    def _load(self) -> None:
        """Load products from JSON file; a broken table leaves the catalog empty."""
        try:
            with self._products_file.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"⚠️ Products file not found: {self._products_file}")
            return
        except json.JSONDecodeError as e:
            logger.error(f"Invalid products JSON: {e}")
            return

        if not isinstance(data, dict):
            logger.error(f"Products file must hold a JSON object: {self._products_file}")
            return

        self._parse(data)
        logger.info(f"✅ Loaded {len(self._by_code)} products")

    def _parse(self, data: Mapping[str, Mapping]) -> None:
        self._by_code.clear()

        for code, entry in data.items():
            if not isinstance(entry, Mapping) or "name" not in entry:
                logger.warning(f"Skipping invalid product entry: {code}")
                continue

            try:
                product = Product(
                    code=str(code),
                    name=str(entry["name"]),
                    price=entry.get("price", 0) or 0,
                )
            except ValidationError as e:
                logger.warning(f"Skipping invalid product entry {code}: {e.errors()[0]['msg']}")
                continue

            self._by_code[product.code] = product

    def reload(self) -> None:
        """Reload catalog from file."""
        if self._products_file is None:
            return
        logger.info("Reloading product lookup table...")
        self._by_code.clear()
        self._load()

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def find(self, code: str) -> Optional[Product]:
        """Find product by exact code."""
        return self._by_code.get(code)

    def resolve(self, code: str) -> Product:
        """
        Resolve a scanned code to a report identity.

        Args:
            code: Scanned code string

        Returns:
            Table entry, or ``Product.fallback(code)`` when unknown
        """
        product = self.find(str(code))
        if product is None:
            logger.debug(f"Unknown code {code}, reporting as-is")
            return Product.fallback(str(code))
        return product

    def __len__(self) -> int:
        return len(self._by_code)
