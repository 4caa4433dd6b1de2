"""
Create or promote an admin account

Usage:
    python -m app.tools.create_admin --email admin@agendoai.com --password 'Admin@123' --name Admin
"""
import argparse
import asyncio
import logging
import sys

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import session_scope, init_db, close_db
from app.core.security import hash_password, validate_password_strength
from app.models.user import User, UserRole

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def upsert_admin(session: AsyncSession, email: str, password: str, name: str) -> User:
    """Create the admin, or promote and reset the password of an existing account"""
    result = await session.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()

    if user:
        logger.info(f"🔄 Promoting existing user {user.email} to admin")
        user.role = UserRole.ADMIN
        user.password_hash = hash_password(password)
        user.is_active = True
        user.is_verified = True
    else:
        user = User(
            email=email.lower(),
            password_hash=hash_password(password),
            name=name,
            role=UserRole.ADMIN,
            is_active=True,
            is_verified=True,
        )
        session.add(user)
        logger.info(f"✅ Creating admin {email}")

    await session.commit()
    await session.refresh(user)
    return user


async def create_admin(email: str, password: str, name: str) -> User:
    await init_db()
    try:
        async with session_scope() as session:
            return await upsert_admin(session, email, password, name)
    finally:
        await close_db()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote an AgendoAI admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Administrador")
    args = parser.parse_args(argv)

    is_valid, error = validate_password_strength(args.password)
    if not is_valid:
        logger.error(f"❌ {error}")
        return 1

    user = asyncio.run(create_admin(args.email, args.password, args.name))
    logger.info(f"🎉 Admin ready: {user.email} (ID: {user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
