# backend/modules/restaurants/models/__init__.py

from .restaurant_models import Restaurant

__all__ = ["Restaurant"]
