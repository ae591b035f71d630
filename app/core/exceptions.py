"""
Domain exceptions raised by the service layer.

Every exception is an HTTPException subclass, so FastAPI renders it with the
right status code without extra handlers. "Not found" is also used when the
caller has no access, so the existence of private records is never leaked.
"""
from typing import Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base class for domain errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail
        )


class NotFoundError(AppException):
    """Entity absent, or caller lacks access to it."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ForbiddenError(AppException):
    """Authenticated but not allowed to perform the action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized to perform this action"


class InvalidMessageError(AppException):
    """Message payload has no content, media or shared reference."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Message must have content, media or a shared tweet"


class ValidationFailedError(AppException):
    """Schema-level constraint violation (length, self-reference, ...)."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Validation failed"


class ConflictError(AppException):
    """Uniqueness violation that could not be collapsed."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"
