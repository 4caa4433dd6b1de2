"""
FastAPI dependencies: database session, current user and role guards
"""
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.security import decode_access_token
from app.models.user import User, UserRole

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Resolve the bearer access token to an active user

    Raises:
        HTTPException: 401 if the token is missing, invalid, a refresh token,
            or points at a deactivated account
    """
    if not credentials:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    user_id = str(payload.get("sub") or "")
    if not user_id.isdigit():
        raise _unauthorized("Invalid token payload")

    user = await db.get(User, int(user_id))
    if not user or not user.is_active:
        raise _unauthorized("User not found or inactive")

    return user


def require_roles(*roles: UserRole, label: str):
    """Build a dependency that admits only users holding one of ``roles``"""

    async def guard(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access forbidden: {label} role required",
            )
        return current_user

    return guard


get_current_client = require_roles(UserRole.CLIENT, label="Client")
get_current_provider = require_roles(UserRole.PROVIDER, label="Provider")
get_current_admin = require_roles(UserRole.ADMIN, label="Admin")
# Support staff can read administration views but not change them
get_current_staff = require_roles(UserRole.ADMIN, UserRole.SUPPORT, label="Staff")
