# backend/modules/customers/routers/tier_router.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.auth_context import RequestContext
from core.database import get_db

from ..schemas.customer_schemas import LoyaltyTierCreate, LoyaltyTierResponse, LoyaltyTierUpdate
from ..services.tier_service import TierService

router = APIRouter(prefix="/api/v1/tiers", tags=["Loyalty Tiers"])


@router.get("/", response_model=List[LoyaltyTierResponse])
def list_tiers(
    restaurant_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return TierService(db, context).list_tiers(restaurant_id)


@router.post("/", response_model=LoyaltyTierResponse, status_code=status.HTTP_201_CREATED)
def create_tier(
    data: LoyaltyTierCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return TierService(db, context).create_tier(data)


@router.put("/{tier_id}", response_model=LoyaltyTierResponse)
def update_tier(
    tier_id: int,
    data: LoyaltyTierUpdate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return TierService(db, context).update_tier(tier_id, data)


@router.delete("/{tier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tier(
    tier_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    TierService(db, context).delete_tier(tier_id)
