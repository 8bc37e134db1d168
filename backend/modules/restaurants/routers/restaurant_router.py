# backend/modules/restaurants/routers/restaurant_router.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import require_admin, require_platform_admin
from core.auth_context import RequestContext
from core.database import get_db

from ..schemas.restaurant_schemas import RestaurantCreate, RestaurantResponse
from ..services.restaurant_service import RestaurantService

router = APIRouter(prefix="/api/v1/restaurants", tags=["Restaurants"])


@router.get("/", response_model=List[RestaurantResponse])
def list_restaurants(
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Restaurants visible to the current user."""
    return RestaurantService(db, context).list_restaurants()


@router.post("/", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
def create_restaurant(
    data: RestaurantCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_platform_admin),
):
    return RestaurantService(db, context).create_restaurant(data)


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
def get_restaurant(
    restaurant_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return RestaurantService(db, context).get_restaurant(restaurant_id)
