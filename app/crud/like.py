import logging
from typing import List

from fastapi import status
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import CustomHTTPException
from app.core.error_codes import ALREADY_LIKED, LIKE_NOT_FOUND
from app.crud.post import get_post
from app.models.like import Like
from app.models.user import User

logger = logging.getLogger(__name__)


async def like_post(session: AsyncSession, user: User, post_id: str) -> Like:
    await get_post(session, post_id)

    existing = await session.get(Like, (user.id, post_id))
    if existing:
        raise CustomHTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Post already liked",
            error_code=ALREADY_LIKED
        )

    like = Like(user_id=user.id, post_id=post_id)
    try:
        session.add(like)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise CustomHTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Post already liked",
            error_code=ALREADY_LIKED
        )
    await session.refresh(like)
    return like


async def unlike_post(session: AsyncSession, user_id: str, post_id: str) -> None:
    result = await session.execute(
        delete(Like).where(Like.user_id == user_id, Like.post_id == post_id)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise CustomHTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Like not found",
            error_code=LIKE_NOT_FOUND
        )
    await session.commit()


async def get_likers(session: AsyncSession, post_id: str) -> List[User]:
    await get_post(session, post_id)
    result = await session.execute(
        select(User)
        .join(Like, User.id == Like.user_id)
        .where(Like.post_id == post_id)
        .order_by(Like.created_at, Like.user_id)
    )
    return list(result.scalars().all())
