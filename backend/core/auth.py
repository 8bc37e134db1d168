"""
Authentication for AirCRM API endpoints.

Admin dashboard users authenticate with a JWT obtained from
``/api/v1/auth/login``; mobile and POS clients may instead present the
static API bearer token from settings. Either way the route receives a
:class:`~core.auth_context.RequestContext`.
"""

import hmac
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .auth_context import RequestContext, UserRole
from .config import get_settings
from .database import get_db
from .error_handling import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed JWT access token."""
    settings = get_settings()
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode.update(
        {
            "exp": expire,
            "iat": now,
            "iss": settings.jwt_issuer,
            "type": "access",
        }
    )
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate a JWT access token, returning its claims."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        return None
    except JWTError as e:
        logger.warning("JWT verification failed: %s", e)
        return None

    if payload.get("type") != "access" or payload.get("sub") is None:
        logger.warning("Token missing subject or has wrong type")
        return None
    return payload


def _is_api_token(token: str) -> bool:
    expected = get_settings().api_bearer_token
    return bool(expected) and hmac.compare_digest(token, expected)


def get_request_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> RequestContext:
    """Resolve the principal from a JWT or the static API bearer token."""
    from modules.auth.models.user_models import AdminUser

    if not credentials:
        raise AuthenticationError()

    token = credentials.credentials
    if _is_api_token(token):
        return RequestContext(
            user_id=None, role=UserRole.API_CLIENT, auth_method="api_token"
        )

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError()

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError()

    user = db.query(AdminUser).filter(AdminUser.id == user_id).first()
    if not user or not user.is_active:
        logger.warning("Token presented for missing or inactive user %s", user_id)
        raise AuthenticationError()

    return RequestContext(
        user_id=user.id,
        role=UserRole(user.role),
        restaurant_id=user.restaurant_id,
        email=user.email,
    )


def require_admin(
    context: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Gate for admin dashboard endpoints (ADMIN or RESTAURANT_ADMIN)."""
    if context.is_admin or context.role == UserRole.API_CLIENT:
        return context
    logger.warning("User %s with role %s denied admin access", context.user_id, context.role)
    raise AuthorizationError("Admin role required")


def require_platform_admin(
    context: RequestContext = Depends(get_request_context),
) -> RequestContext:
    if context.role != UserRole.ADMIN:
        raise AuthorizationError("Platform admin role required")
    return context
