# backend/modules/auth/models/__init__.py

from .user_models import AdminUser

__all__ = ["AdminUser"]
