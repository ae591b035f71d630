"""
Dependency injection for FastAPI routes.
Provides reusable dependencies for authentication and pagination.
"""
from typing import Optional

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.core.security import SecurityException, extract_token_from_header, get_user_id_from_token
from app.models.user import User


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user.

    Decodes the bearer token locally and loads the user it names.

    Raises:
        SecurityException: 401 if the header is missing or the token is invalid
        NotFoundError: 404 if the token names an unknown user

    Example:
        ```python
        @router.get("/me")
        async def me(current_user: User = Depends(get_current_user)):
            return {"username": current_user.username}
        ```
    """
    if not authorization:
        raise SecurityException("Missing authorization header")

    token = extract_token_from_header(authorization)
    user_id = get_user_id_from_token(token)

    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Like ``get_current_user`` but returns None for anonymous requests.

    A present but invalid token is still rejected.
    """
    if not authorization:
        return None
    return await get_current_user(authorization, db)


def get_pagination_params(
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(20, ge=1, description="Items per page (max 100)")
) -> dict:
    """
    Dependency for page-based pagination parameters.

    Example:
        ```python
        @router.get("/notifications")
        async def list_notifications(pagination: dict = Depends(get_pagination_params)):
            page, limit = pagination["page"], pagination["limit"]
        ```
    """
    return {
        "page": page,
        "limit": min(limit, 100),
    }
