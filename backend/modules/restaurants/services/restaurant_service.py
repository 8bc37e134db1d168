# backend/modules/restaurants/services/restaurant_service.py

import logging
from typing import List

from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.error_handling import AuthorizationError, NotFoundError

from ..models.restaurant_models import Restaurant
from ..schemas.restaurant_schemas import RestaurantCreate

logger = logging.getLogger(__name__)


class RestaurantService:
    """Restaurant lookup and registration"""

    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    def list_restaurants(self) -> List[Restaurant]:
        query = self.db.query(Restaurant).order_by(Restaurant.name)
        if not self.context.is_superuser:
            query = query.filter(Restaurant.id == self.context.restaurant_id)
        return query.all()

    def get_restaurant(self, restaurant_id: int) -> Restaurant:
        if not self.context.can_access_restaurant(restaurant_id):
            raise AuthorizationError("Cannot access another restaurant's data")
        restaurant = self.db.get(Restaurant, restaurant_id)
        if not restaurant:
            raise NotFoundError("Restaurant", restaurant_id)
        return restaurant

    def create_restaurant(self, data: RestaurantCreate) -> Restaurant:
        restaurant = Restaurant(**data.model_dump())
        self.db.add(restaurant)
        self.db.commit()
        self.db.refresh(restaurant)
        logger.info("Created restaurant %s (ID: %s)", restaurant.name, restaurant.id)
        return restaurant
