"""
Authentication API endpoints
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    TokenResponse,
    ChangePasswordRequest,
    MessageResponse,
    UserResponse,
)
from app.services.auth_service import AuthService
from app.dependencies import get_current_user
from app.models.user import User
from app.core.exceptions import AgendoException

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new client or provider

    - Providers get a marketplace profile and a zeroed balance
    - Returns user data and JWT tokens
    """
    logger.info("=" * 80)
    logger.info("REGISTRATION REQUEST RECEIVED")
    logger.info(f"📧 Email: {data.email}")
    logger.info(f"👤 Name: {data.name}")
    logger.info(f"🏷️  Role: {data.role}")

    try:
        user, tokens = await AuthService(db).register_user(data)
        logger.info(f"✅ REGISTRATION COMPLETED: user {user.id}")
        logger.info("=" * 80)

        return RegisterResponse(
            message="Registration successful",
            user=UserResponse(**user.to_dict()),
            tokens=tokens,
        )

    except AgendoException as e:
        logger.error(f"❌ REGISTRATION FAILED ({e.status_code}): {e.message}")
        logger.error("=" * 80)
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    User login

    - Authenticates email and password
    - Deactivated accounts are rejected with 403
    - Returns user data and JWT tokens
    """
    try:
        user, tokens = await AuthService(db).login(data)

        return LoginResponse(
            message="Login successful",
            user=UserResponse(**user.to_dict()),
            tokens=tokens
        )

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db),
):
    """Exchange a refresh token for a new token pair"""
    try:
        return await AuthService(db).refresh_access_token(data.refresh_token)

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
):
    """Get the authenticated user"""
    return UserResponse(**current_user.to_dict())


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Change password

    - Requires the current password
    - New password must satisfy the strength rules
    """
    try:
        await AuthService(db).change_password(current_user.id, data.old_password, data.new_password)
        return MessageResponse(message="Password changed successfully")

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user),
):
    """
    Logout

    Tokens are stateless; the client discards them.
    """
    logger.info(f"👋 User logged out: {current_user.email}")
    return MessageResponse(message="Logged out successfully")


@router.post("/deactivate", response_model=MessageResponse)
async def deactivate_account(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate the authenticated account"""
    try:
        await AuthService(db).deactivate_account(current_user)
        return MessageResponse(message="Account deactivated")

    except AgendoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
