from typing import List, Optional, Sequence

from sqlalchemy import select, delete, func
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.follow import Follow
from app.models.user import User


async def lock_users(session: AsyncSession, user_ids: Sequence[str]) -> List[User]:
    """Re-read users inside the current transaction, locking their rows where supported"""
    result = await session.execute(
        select(User).where(User.id.in_(list(user_ids))).with_for_update()
    )
    return list(result.scalars().all())


async def get_follow(session: AsyncSession, follower_id: str, following_id: str) -> Optional[Follow]:
    result = await session.execute(
        select(Follow).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id
        )
    )
    return result.scalars().first()


async def add_follow(session: AsyncSession, follower_id: str, following_id: str) -> Follow:
    """Stage a follow edge and flush it so constraint violations surface here"""
    follow_entry = Follow(follower_id=follower_id, following_id=following_id)
    session.add(follow_entry)
    await session.flush()
    return follow_entry


async def delete_follow(session: AsyncSession, follower_id: str, following_id: str) -> bool:
    """Remove a follow edge, returning whether one existed"""
    result = await session.execute(
        delete(Follow).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id
        )
    )
    return result.rowcount > 0


async def get_following(session: AsyncSession, user_id: str) -> List[User]:
    """Get all users that a given user is following"""
    result = await session.execute(
        select(User)
        .join(Follow, User.id == Follow.following_id)
        .where(Follow.follower_id == user_id)
        .order_by(Follow.created_at, Follow.following_id)
    )
    return list(result.scalars().all())


async def get_followers(session: AsyncSession, user_id: str) -> List[User]:
    """Get all users following a given user"""
    result = await session.execute(
        select(User)
        .join(Follow, User.id == Follow.follower_id)
        .where(Follow.following_id == user_id)
        .order_by(Follow.created_at, Follow.follower_id)
    )
    return list(result.scalars().all())


async def count_followers(session: AsyncSession, user_id: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
    )
    return result.scalar_one()


async def count_following(session: AsyncSession, user_id: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
    )
    return result.scalar_one()
