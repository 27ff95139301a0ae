"""
==============================================================================
Catalog Package - Product Lookup
==============================================================================

Static lookup table resolving scanned codes to report identities.

Classes:
--------
- Product: Pydantic model for lookup entries
- ProductCatalog: Code -> Product table with fallback resolution

==============================================================================
"""

from .models import Product
from .catalog import ProductCatalog

__all__ = [
    "Product",
    "ProductCatalog",
]
