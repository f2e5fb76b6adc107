"""
User record store operations:
- lookup by identity, email or username
- existence check
- creation with uniqueness validation
"""
import logging
from typing import Optional

from fastapi import status
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import CustomHTTPException
from app.core.error_codes import (
    EMAIL_ALREADY_REGISTERED,
    USERNAME_ALREADY_TAKEN,
    DATABASE_INTEGRITY_ERROR,
    INTERNAL_SERVER_ERROR,
)
from app.models.user import User, DEFAULT_PROFILE_IMAGE_URL
from app.schemas.user import UserCreate

logger = logging.getLogger(__name__)


async def get_user_by_id(session: AsyncSession, user_id: str) -> Optional[User]:
    """Retrieve user by id"""
    try:
        result = await session.execute(
            select(User).where(User.id == str(user_id))
        )
        return result.scalars().first()
    except SQLAlchemyError as e:
        logger.error(f"Error retrieving user {user_id}: {e}")
        raise CustomHTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error retrieving user",
            error_code=INTERNAL_SERVER_ERROR
        )


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Case-insensitive email lookup"""
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalars().first()


async def get_user_by_email_or_username(session: AsyncSession, identifier: str) -> Optional[User]:
    """Retrieve user by email or username"""
    identifier = identifier.strip()
    result = await session.execute(
        select(User).where(
            or_(func.lower(User.email) == identifier.lower(), User.username == identifier)
        )
    )
    return result.scalars().first()


async def user_exists(session: AsyncSession, user_id: str) -> bool:
    result = await session.execute(
        select(User.id).where(User.id == str(user_id))
    )
    return result.scalar_one_or_none() is not None


async def create_user(session: AsyncSession, user_in: UserCreate, hashed_password: str) -> User:
    """
    Create a new user account.

    The password must already be hashed; hashing is an explicit step of the
    registration flow rather than a side effect of saving.
    """
    result = await session.execute(
        select(User).where(
            or_(func.lower(User.email) == user_in.email, User.username == user_in.username)
        )
    )
    existing_user = result.scalars().first()
    if existing_user:
        if existing_user.email.lower() == user_in.email:
            raise CustomHTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered",
                error_code=EMAIL_ALREADY_REGISTERED
            )
        raise CustomHTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already taken",
            error_code=USERNAME_ALREADY_TAKEN
        )

    db_user = User(
        username=user_in.username,
        email=user_in.email,
        bio=user_in.bio or "",
        profile_image_url=user_in.image_url or DEFAULT_PROFILE_IMAGE_URL,
        hashed_password=hashed_password,
    )

    try:
        session.add(db_user)
        await session.commit()
        await session.refresh(db_user)
        return db_user
    except IntegrityError as e:
        # Lost a race against a concurrent registration with the same identity
        await session.rollback()
        logger.warning(f"Integrity error creating user {user_in.username}: {e.orig}")
        raise CustomHTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email or username already registered",
            error_code=DATABASE_INTEGRITY_ERROR
        )
