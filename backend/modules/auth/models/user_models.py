# backend/modules/auth/models/user_models.py

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from core.auth_context import UserRole
from core.database import Base
from core.mixins import TimestampMixin


class AdminUser(Base, TimestampMixin):
    """Dashboard user (platform admin, restaurant admin or staff)"""
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.STAFF)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)

    restaurant = relationship("Restaurant")

    def __repr__(self):
        return f"<AdminUser(id={self.id}, email='{self.email}', role='{self.role}')>"
