# backend/modules/products/routers/product_router.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.auth_context import RequestContext
from core.database import get_db
from core.pagination import Page, PaginationParams

from ..schemas.product_schemas import ProductCreate, ProductResponse, ProductUpdate
from ..services.product_service import ProductService

router = APIRouter(prefix="/api/v1/products", tags=["Products"])


@router.get("/", response_model=Page[ProductResponse])
def list_products(
    restaurant_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return ProductService(db, context).list_products(
        pagination, restaurant_id, search, category, is_active
    )


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return ProductService(db, context).create_product(data)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return ProductService(db, context).get_product(product_id)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_admin),
):
    return ProductService(db, context).update_product(product_id, data)
