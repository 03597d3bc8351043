# Import all models for easy access
from .product import Product, ProductBase, ProductRead

# Export all models
__all__ = [
    "Product", "ProductBase", "ProductRead",
]
