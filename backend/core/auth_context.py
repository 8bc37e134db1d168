"""Principal passed explicitly into every service operation.

Routes build a :class:`RequestContext` from the authenticated credentials
and hand it to services together with the database session, so no service
reads request state from globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .error_handling import APIValidationError, AuthorizationError


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    RESTAURANT_ADMIN = "RESTAURANT_ADMIN"
    STAFF = "STAFF"
    API_CLIENT = "API_CLIENT"


ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.RESTAURANT_ADMIN})


@dataclass(frozen=True)
class RequestContext:
    """Represents the authenticated principal for a request."""

    user_id: Optional[int]
    role: UserRole
    restaurant_id: Optional[int] = None
    email: Optional[str] = None
    auth_method: str = "jwt"

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_superuser(self) -> bool:
        """Platform admins and API clients may act on any restaurant."""
        return self.role in (UserRole.ADMIN, UserRole.API_CLIENT)

    def resolve_restaurant_id(self, requested: Optional[int] = None) -> int:
        """Return the restaurant this principal acts on.

        Principals bound to a restaurant may only act on it; platform-level
        principals must name a restaurant when they are not bound to one.
        """
        if self.is_superuser:
            restaurant_id = requested if requested is not None else self.restaurant_id
            if restaurant_id is None:
                raise APIValidationError.for_field(
                    "restaurant_id", "restaurant_id is required"
                )
            return restaurant_id

        if self.restaurant_id is None:
            raise AuthorizationError("User is not assigned to a restaurant")
        if requested is not None and requested != self.restaurant_id:
            raise AuthorizationError("Cannot access another restaurant's data")
        return self.restaurant_id

    def can_access_restaurant(self, restaurant_id: Optional[int]) -> bool:
        return self.is_superuser or (
            self.restaurant_id is not None and self.restaurant_id == restaurant_id
        )
