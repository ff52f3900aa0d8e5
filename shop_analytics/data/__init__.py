"""
Data Generation Module
"""
from .generators import (
    CATEGORY_NAMES,
    CustomerGenerator,
    OrderGenerator,
    ProductGenerator,
    StorefrontDataGenerator,
)

__all__ = [
    "StorefrontDataGenerator",
    "CustomerGenerator",
    "ProductGenerator",
    "OrderGenerator",
    "CATEGORY_NAMES",
]
