# backend/core/error_handling.py

"""
Error types shared by every service and route.

Services raise these; ``core.exceptions`` turns them into consistent JSON
responses. Only three categories reach the client: validation failures
(with a field-error list), not-found, and unexpected errors.
"""

from typing import Any, Dict, List, Optional

from fastapi import status


class APIError(Exception):
    """Base exception for API errors"""

    error_code = "API_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)


class NotFoundError(APIError):
    """Resource not found error"""

    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} with identifier {identifier} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "identifier": str(identifier)},
        )


class ConflictError(APIError):
    """Resource conflict error"""

    error_code = "CONFLICT"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message, status_code=status.HTTP_409_CONFLICT, details=details
        )


class APIValidationError(APIError):
    """Input validation error - named to avoid the Pydantic ValidationError collision"""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        self.errors = errors or []
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"validation_errors": self.errors} if self.errors else {},
        )

    @classmethod
    def for_field(cls, field: str, message: str) -> "APIValidationError":
        return cls(message, [{"field": field, "message": message}])


class AuthenticationError(APIError):
    """Missing or invalid credentials"""

    error_code = "AUTH_FAILED"

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED)


class AuthorizationError(APIError):
    """Authorization error"""

    error_code = "PERMISSION_DENIED"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN)
