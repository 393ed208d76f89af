"""
Variant models.

Model Hierarchy:
- Product: Base product, with the ordered list of variant attribute names
- ProductVariant: One attribute combination, with its gallery, price and SKU
- Warehouse / VariantInventory: Stock per variant and warehouse
"""

from .product import Product
from .variant import ProductVariant
from .inventory import Warehouse, VariantInventory

__all__ = [
    'Product',
    'ProductVariant',
    'Warehouse',
    'VariantInventory',
]
