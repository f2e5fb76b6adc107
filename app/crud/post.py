"""
Post operations: creation, listing with author and like counts, deletion.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from fastapi import status
from sqlalchemy import select, delete, func
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import CustomHTTPException
from app.core.error_codes import POST_NOT_FOUND, POST_DELETE_PERMISSION_DENIED
from app.models.like import Like
from app.models.post import Post
from app.models.user import User
from app.schemas.post import PostRead
from app.schemas.user import UserSummary

logger = logging.getLogger(__name__)


async def create_post(
    session: AsyncSession,
    user: User,
    caption: str,
    image_url: str,
    image_file_id: Optional[str] = None
) -> PostRead:
    post = Post(
        user_id=user.id,
        caption=caption,
        image_url=image_url,
        image_file_id=image_file_id,
    )
    session.add(post)
    await session.commit()
    await session.refresh(post)
    logger.info(f"User {user.id} created post {post.id}")
    return to_post_read(post, user, like_count=0)


def to_post_read(post: Post, author: User, like_count: int) -> PostRead:
    return PostRead(
        id=post.id,
        caption=post.caption,
        image_url=post.image_url,
        created_at=post.created_at,
        user=UserSummary.model_validate(author),
        like_count=like_count,
    )


async def get_like_counts(session: AsyncSession, post_ids: Sequence[str]) -> Dict[str, int]:
    if not post_ids:
        return {}
    result = await session.execute(
        select(Like.post_id, func.count())
        .where(Like.post_id.in_(list(post_ids)))
        .group_by(Like.post_id)
    )
    return {post_id: count for post_id, count in result.all()}


async def _enrich(session: AsyncSession, rows: List[Tuple[Post, User]]) -> List[PostRead]:
    counts = await get_like_counts(session, [post.id for post, _ in rows])
    return [to_post_read(post, author, counts.get(post.id, 0)) for post, author in rows]


async def list_posts(
    session: AsyncSession,
    user_id: Optional[str] = None,
    offset: int = 0,
    limit: int = 20
) -> Tuple[List[PostRead], int]:
    """Posts newest first, optionally restricted to one author"""
    stmt = select(Post, User).join(User, Post.user_id == User.id)
    count_stmt = select(func.count()).select_from(Post)
    if user_id:
        stmt = stmt.where(Post.user_id == user_id)
        count_stmt = count_stmt.where(Post.user_id == user_id)

    stmt = stmt.order_by(Post.created_at.desc(), Post.id).offset(offset).limit(limit)
    result = await session.execute(stmt)
    rows = [(post, author) for post, author in result.all()]
    total = (await session.execute(count_stmt)).scalar_one()
    return await _enrich(session, rows), total


async def get_post(session: AsyncSession, post_id: str) -> Post:
    post = await session.get(Post, post_id)
    if not post:
        raise CustomHTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
            error_code=POST_NOT_FOUND
        )
    return post


async def get_post_read(session: AsyncSession, post_id: str) -> PostRead:
    post = await get_post(session, post_id)
    author = await session.get(User, post.user_id)
    rows = await _enrich(session, [(post, author)])
    return rows[0]


async def delete_post(session: AsyncSession, post_id: str, current_user: User) -> Post:
    """Delete a post and its likes in one transaction. Only the author may delete."""
    post = await get_post(session, post_id)
    if post.user_id != current_user.id:
        raise CustomHTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own posts",
            error_code=POST_DELETE_PERMISSION_DENIED
        )

    try:
        await session.execute(delete(Like).where(Like.post_id == post.id))
        await session.delete(post)
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    logger.info(f"User {current_user.id} deleted post {post_id}")
    return post
