"""
FastAPI Authentication Dependencies

Provides FastAPI dependency functions for JWT authentication.
"""
import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from teamchat.auth.jwt_handler import extract_user_from_token, JWTValidationError
from teamchat.models.user import User

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
# IMPORTANT: scheme_name must match the security scheme defined in main.py custom_openapi()
security = HTTPBearer(
    scheme_name="BearerAuth",
    description="Enter the token returned by /api/login",
    auto_error=False
)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """
    FastAPI dependency to get the current authenticated identity.

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"message": f"Hello {user.username}"}

    Raises:
        HTTPException: 401 if token is missing or invalid
                      403 if token is expired
    """
    if not credentials:
        logger.warning("Authorization header missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return extract_user_from_token(credentials.credentials)

    except JWTValidationError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise HTTPException(
            status_code=e.status_code,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """
    FastAPI dependency that only lets admin identities through.

    Usage:
        @router.get("/admin/stats")
        async def stats(admin: User = Depends(require_admin)):
            ...

    Raises:
        HTTPException: 403 if the identity is not an admin
    """
    if not user.is_admin:
        logger.warning(f"User {user.username} ({user.id}) attempted to access an admin route")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
