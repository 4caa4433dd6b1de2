"""
Authentication service for user registration, login, and JWT management
"""
import logging
from datetime import datetime
from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models.user import User, UserRole
from app.models.provider import ProviderProfile
from app.models.finance import ProviderBalance
from app.schemas.auth import RegisterRequest, LoginRequest, TokenResponse
from app.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    validate_password_strength,
)
from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ValidationError,
    DuplicateError,
    NotFoundError,
)
from app.config import settings

logger = logging.getLogger(__name__)


def build_tokens(user: User) -> TokenResponse:
    """Issue an access/refresh token pair for a user"""
    access_token = create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role.value}
    )
    refresh_token = create_refresh_token(data={"sub": str(user.id)})

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


class AuthService:
    """Service for authentication operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_user(self, data: RegisterRequest) -> Tuple[User, TokenResponse]:
        """
        Register a new client or provider

        Providers also get an empty marketplace profile and a zeroed
        balance so they can configure services right away.

        Args:
            data: Registration data

        Returns:
            Tuple of (user, tokens)

        Raises:
            DuplicateError: If email already exists
            ValidationError: If password is too weak
        """
        logger.info("🔐 [AUTH SERVICE] Starting user registration process...")

        is_valid, error_msg = validate_password_strength(data.password)
        if not is_valid:
            logger.error(f"❌ [VALIDATION] Password validation failed: {error_msg}")
            raise ValidationError(error_msg)

        email = data.email.lower()
        logger.info(f"🔍 [DUPLICATE CHECK] Checking if email exists: {email}")
        result = await self.db.execute(select(User).where(User.email == email))
        if result.scalar_one_or_none():
            logger.error(f"❌ [DUPLICATE CHECK] Email already registered: {email}")
            raise DuplicateError("Email already registered")

        role = UserRole(data.role)
        user = User(
            email=email,
            password_hash=hash_password(data.password),
            name=data.name,
            phone=data.phone,
            cpf=data.cpf,
            address=data.address,
            role=role,
            is_active=True,
            is_verified=False,
        )
        self.db.add(user)
        await self.db.flush()
        logger.info(f"✅ [DATABASE] User record created with ID: {user.id}")

        if role == UserRole.PROVIDER:
            self.db.add(ProviderProfile(
                provider_id=user.id,
                business_name=data.business_name or data.name,
                whatsapp=data.phone,
                address=data.address,
                city=data.city,
                state=data.state,
            ))
            self.db.add(ProviderBalance(provider_id=user.id))
            logger.info("✅ [DATABASE] Provider profile and balance created")

        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"✅ [AUTH SERVICE] User registered successfully: {user.email} ({role.value})")
        return user, build_tokens(user)

    async def login(self, data: LoginRequest) -> Tuple[User, TokenResponse]:
        """
        Authenticate user and generate tokens

        Raises:
            AuthenticationError: If credentials are invalid
            AuthorizationError: If the account was deactivated
        """
        email = data.email.lower()
        logger.info(f"🔓 [AUTH SERVICE] Login attempt: {email}")

        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            logger.error(f"❌ [LOGIN] User not found: {email}")
            raise AuthenticationError("Invalid credentials")

        if not verify_password(data.password, user.password_hash):
            logger.error(f"❌ [VERIFICATION] Invalid password for user: {email}")
            raise AuthenticationError("Invalid credentials")

        if not user.is_active:
            logger.error(f"❌ [VERIFICATION] User is inactive: {email}")
            raise AuthorizationError("Account is deactivated")

        user.last_login = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"✅ [AUTH SERVICE] User logged in successfully: {user.email} (role: {user.role.value})")
        return user, build_tokens(user)

    async def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """
        Generate new token pair from a refresh token

        Raises:
            AuthenticationError: If refresh token is invalid
        """
        payload = decode_refresh_token(refresh_token)
        if not payload:
            raise AuthenticationError("Invalid or expired refresh token")

        user_id = payload.get("sub")
        if not user_id or not str(user_id).isdigit():
            raise AuthenticationError("Invalid token payload")

        user = await self.db.get(User, int(user_id))
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        logger.info(f"Tokens refreshed for user: {user.email}")
        return build_tokens(user)

    async def change_password(self, user_id: int, old_password: str, new_password: str):
        """
        Change user password

        Raises:
            AuthenticationError: If old password is invalid
            ValidationError: If new password is weak
        """
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")

        if not verify_password(old_password, user.password_hash):
            raise AuthenticationError("Invalid current password")

        is_valid, error_msg = validate_password_strength(new_password)
        if not is_valid:
            raise ValidationError(error_msg)

        user.password_hash = hash_password(new_password)
        await self.db.commit()

        logger.info(f"Password changed for user: {user.email}")

    async def deactivate_account(self, user: User):
        """Deactivate the caller's own account; tokens stop working immediately"""
        user.is_active = False
        await self.db.commit()
        logger.info(f"🚫 [AUTH SERVICE] Account deactivated by owner: {user.email}")
