# app/core/exceptions.py
# Error kinds raised from the service layer.
# They stay HTTPExceptions so FastAPI can render them directly; the handlers
# registered in main.py wrap them in the {success, message, error} envelope.
from typing import Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "internal_error"
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ValidationError(AppError):
    """Missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "validation_error"
    default_detail = "Validation error"


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials."""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "authentication_error"
    default_detail = "Could not validate credentials"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(AppError):
    """Role or ownership mismatch."""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "authorization_error"
    default_detail = "You are not allowed to perform this action"


# Chat code reads better with this name
ForbiddenError = AuthorizationError


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found"
    default_detail = "Resource not found"


class InvalidStateError(AppError):
    """Operation is illegal for the current order / withdrawal state."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "invalid_state"
    default_detail = "Operation not allowed in the current state"


class ConflictError(AppError):
    """Duplicate value for a unique field."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "conflict"
    default_detail = "Resource already exists"


class InternalError(AppError):
    pass
