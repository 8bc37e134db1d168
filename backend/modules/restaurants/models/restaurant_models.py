# backend/modules/restaurants/models/restaurant_models.py

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from core.database import Base
from core.mixins import TimestampMixin


class Restaurant(Base, TimestampMixin):
    """A restaurant owning its customers, segments, campaigns and products"""
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    address = Column(String(500), nullable=True)
    phone = Column(String(30), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    customers = relationship("Customer", back_populates="restaurant")
    loyalty_tiers = relationship("LoyaltyTier", back_populates="restaurant")
    segments = relationship("Segment", back_populates="restaurant")
    campaigns = relationship("Campaign", back_populates="restaurant")
    products = relationship("Product", back_populates="restaurant")

    def __repr__(self):
        return f"<Restaurant(id={self.id}, name='{self.name}')>"
