# backend/modules/transactions/routers/transaction_router.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.auth_context import RequestContext
from core.database import get_db
from core.datetime_utils import to_naive_utc
from core.pagination import Page, PaginationParams

from ..schemas.transaction_schemas import (
    TransactionCreate,
    TransactionPreview,
    TransactionResponse,
    TransactionSummary,
)
from ..services.transaction_service import TransactionService

router = APIRouter(prefix="/api/v1/transactions", tags=["Transactions"])


@router.get("/", response_model=Page[TransactionSummary])
def list_transactions(
    restaurant_id: Optional[int] = Query(None),
    customer_id: Optional[int] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return TransactionService(db, context).list_transactions(
        pagination, restaurant_id, customer_id, to_naive_utc(date_from), to_naive_utc(date_to)
    )


@router.post("/", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    data: TransactionCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    """Record a completed sale, apply campaigns and move the customer's points."""
    return TransactionService(db, context).create_transaction(data)


@router.post("/preview", response_model=TransactionPreview)
def preview_transaction(
    data: TransactionCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return TransactionService(db, context).preview_transaction(data)


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return TransactionService(db, context).get_transaction(transaction_id)
