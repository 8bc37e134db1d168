# backend/modules/products/services/product_service.py

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.error_handling import NotFoundError
from core.pagination import PaginationParams

from ..models.product_models import Product
from ..schemas.product_schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, db: Session, context: RequestContext):
        self.db = db
        self.context = context

    def list_products(
        self,
        pagination: PaginationParams,
        restaurant_id: Optional[int] = None,
        search: Optional[str] = None,
        category: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> dict:
        restaurant_id = self.context.resolve_restaurant_id(restaurant_id)
        query = self.db.query(Product).filter(Product.restaurant_id == restaurant_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        if category:
            query = query.filter(Product.category == category)
        if is_active is not None:
            query = query.filter(Product.is_active.is_(is_active))
        query = query.order_by(Product.category, Product.name)
        items, total = pagination.paginate_query(query)
        return pagination.page_of(items, total)

    def get_product(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product or not self.context.can_access_restaurant(product.restaurant_id):
            raise NotFoundError("Product", product_id)
        return product

    def create_product(self, data: ProductCreate) -> Product:
        restaurant_id = self.context.resolve_restaurant_id(data.restaurant_id)
        product = Product(restaurant_id=restaurant_id, **data.model_dump(exclude={"restaurant_id"}))
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        logger.info("Created product %s (ID: %s)", product.name, product.id)
        return product

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        product = self.get_product(product_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)
        logger.info("Updated product %s", product.id)
        return product
