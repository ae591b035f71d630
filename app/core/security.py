"""
Security utilities for authentication.
Handles JWT bearer token creation and validation.
"""
import jwt
from datetime import timedelta
from typing import Optional, Dict, Any
from fastapi import HTTPException, status

from app.config import settings
from app.utils.datetime_utils import utc_now


class SecurityException(HTTPException):
    """Custom exception for security-related errors."""
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token.

    Args:
        data: Payload data to encode (``sub`` must carry the user id)
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token

    Example:
        ```python
        token = create_access_token(data={"sub": user.id})
        ```
    """
    to_encode = data.copy()
    now = utc_now()
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expiration_hours))

    to_encode.update({"exp": expire, "iat": now})

    return jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm
    )


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        SecurityException: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise SecurityException("Token has expired")
    except jwt.InvalidTokenError:
        raise SecurityException("Invalid token")


def extract_token_from_header(authorization: str) -> str:
    """
    Extract token from an Authorization header.

    Args:
        authorization: Header value in ``Bearer <token>`` format

    Returns:
        Raw token string

    Raises:
        SecurityException: If header format is invalid
    """
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise SecurityException("Invalid authorization header format")
    return parts[1]


def get_user_id_from_token(token: str) -> str:
    """Return the user id (``sub`` claim) of a valid token."""
    payload = decode_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise SecurityException("Token has no subject")
    return str(user_id)
