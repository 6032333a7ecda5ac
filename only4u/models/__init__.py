# only4u/models/__init__.py
from .user import User
from .product_group import ProductGroup, CATEGORIES, STATUSES
from .product_variant import ProductVariant

__all__ = [
    "User",
    "ProductGroup",
    "ProductVariant",
    "CATEGORIES",
    "STATUSES",
]
