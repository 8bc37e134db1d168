# backend/modules/products/models/__init__.py

from .product_models import Product

__all__ = ["Product"]
