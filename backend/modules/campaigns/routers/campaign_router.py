# backend/modules/campaigns/routers/campaign_router.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.auth_context import RequestContext
from core.database import get_db
from core.pagination import Page, PaginationParams

from ..models.campaign_models import CampaignType
from ..schemas.campaign_schemas import (
    CampaignCreate,
    CampaignResponse,
    CampaignSummary,
    CampaignUpdate,
)
from ..services.campaign_service import CampaignService

router = APIRouter(prefix="/api/v1/campaigns", tags=["Campaigns"])


@router.get("/", response_model=Page[CampaignResponse])
def list_campaigns(
    restaurant_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    type: Optional[CampaignType] = Query(None),
    campaign_status: Optional[str] = Query(None, alias="status", pattern="^(active|inactive)$"),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return CampaignService(db, context).list_campaigns(
        pagination, restaurant_id, search, type, campaign_status
    )


@router.post("/", response_model=CampaignResponse, status_code=status.HTTP_201_CREATED)
def create_campaign(
    data: CampaignCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Create a campaign; with send_notification its audience is notified."""
    return CampaignService(db, context).create_campaign(data)


@router.get("/eligible/{customer_id}", response_model=List[CampaignSummary])
def list_eligible_campaigns(
    customer_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return CampaignService(db, context).eligible_for_customer(customer_id)


@router.get("/{campaign_id}", response_model=CampaignResponse)
def get_campaign(
    campaign_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return CampaignService(db, context).get_campaign_response(campaign_id)


@router.put("/{campaign_id}", response_model=CampaignResponse)
def update_campaign(
    campaign_id: int,
    data: CampaignUpdate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return CampaignService(db, context).update_campaign(campaign_id, data)


@router.delete("/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_campaign(
    campaign_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    CampaignService(db, context).delete_campaign(campaign_id)
