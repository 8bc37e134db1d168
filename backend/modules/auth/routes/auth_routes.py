"""
Authentication routes for the AirCRM admin dashboard.

Provides JWT login, the current-user endpoint and user provisioning.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import get_request_context, require_platform_admin
from core.auth_context import RequestContext
from core.database import get_db
from core.error_handling import NotFoundError

from ..models.user_models import AdminUser
from ..schemas.auth_schemas import AdminUserCreate, LoginRequest, Token, UserInfo
from ..services import auth_service

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/login", response_model=Token)
def login_for_access_token(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Authenticate with email and password and receive a bearer token.

    The token carries the user's role and restaurant and must be sent as
    ``Authorization: Bearer <token>``.
    """
    return auth_service.login(db, credentials.email, credentials.password)


@router.get("/me", response_model=UserInfo)
def read_current_user(
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Information about the authenticated user."""
    if context.user_id is None:
        raise NotFoundError("User", "api_token")
    return db.get(AdminUser, context.user_id)


@router.post("/users", response_model=UserInfo, status_code=status.HTTP_201_CREATED)
def create_user(
    data: AdminUserCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_platform_admin),
):
    return auth_service.create_admin_user(db, data)
