"""Admin user authentication and provisioning."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from core.auth import create_access_token, get_password_hash, verify_password
from core.auth_context import UserRole
from core.config import get_settings
from core.error_handling import APIValidationError, AuthenticationError, ConflictError

from ..models.user_models import AdminUser
from ..schemas.auth_schemas import AdminUserCreate, Token, UserInfo

logger = logging.getLogger(__name__)


def authenticate_user(db: Session, email: str, password: str) -> Optional[AdminUser]:
    user = db.query(AdminUser).filter(AdminUser.email == email).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def login(db: Session, email: str, password: str) -> Token:
    user = authenticate_user(db, email, password)
    if user is None:
        logger.warning("Failed login attempt for %s", email)
        raise AuthenticationError("Incorrect email or password")

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)

    settings = get_settings()
    token = create_access_token(
        {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
            "restaurant_id": user.restaurant_id,
        }
    )
    logger.info("User %s logged in", user.id)
    return Token(
        access_token=token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserInfo.model_validate(user),
    )


def create_admin_user(db: Session, data: AdminUserCreate) -> AdminUser:
    if data.role == UserRole.API_CLIENT:
        raise APIValidationError.for_field("role", "API_CLIENT is reserved for the API token")
    if data.role != UserRole.ADMIN and data.restaurant_id is None:
        raise APIValidationError.for_field(
            "restaurant_id", "Restaurant users must belong to a restaurant"
        )
    if db.query(AdminUser.id).filter(AdminUser.email == data.email).first():
        raise ConflictError("A user with this email already exists", {"email": data.email})

    user = AdminUser(
        email=data.email,
        name=data.name,
        hashed_password=get_password_hash(data.password),
        role=data.role,
        restaurant_id=data.restaurant_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created %s user %s (ID: %s)", user.role.value, user.email, user.id)
    return user
