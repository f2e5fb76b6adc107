"""
Follow service: the social-graph consistency protocol.

Every mutation runs as one atomic unit of work:
  1. open a transaction
  2. re-read both participants inside it
  3. validate existence and duplicate status
  4. apply the single edge insert/delete
  5. commit, or roll back on any failure
  6. report the outcome only after commit/rollback completed

Identity format and self-follow are rejected before a transaction is opened.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar
from uuid import UUID

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import (
    AlreadyFollowing,
    InvalidIdentity,
    SelfFollowRejected,
    ServiceError,
    TransientStoreFailure,
    UnknownFailure,
    UserNotFound,
)
from app.crud import follow as follow_crud
from app.crud.user import user_exists
from app.db.database import Database
from app.schemas.follow import FollowRead, FollowStats, UnfollowResult
from app.schemas.user import UserSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_identity(user_id: str) -> str:
    """Validate a user identity reference and return its canonical form"""
    try:
        return str(UUID(str(user_id)))
    except (ValueError, TypeError, AttributeError):
        raise InvalidIdentity()


# Serialization failure, deadlock, lock timeout, admin shutdown, connection loss
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03", "57P01", "08000", "08003", "08006"}
TRANSIENT_MESSAGES = (
    "database is locked",
    "database table is locked",
    "database is busy",
    "connection refused",
    "connection reset",
    "server closed the connection",
)


def _is_transient(exc: SQLAlchemyError) -> bool:
    """Only failures that a later attempt can succeed on are retried"""
    if isinstance(exc, PoolTimeoutError):
        return True
    if not isinstance(exc, DBAPIError):
        return False
    if exc.connection_invalidated:
        return True
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True
    if isinstance(exc, OperationalError):
        detail = str(exc.orig).lower()
        return any(marker in detail for marker in TRANSIENT_MESSAGES)
    return False


class FollowService:
    """Follow/unfollow and follower listings over an injected ``Database`` handle."""

    def __init__(self, database: Database, max_retries: int = 3, retry_delay: float = 0.2):
        self.database = database
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

    async def _run(self, operation: Callable[[AsyncSession], Awaitable[T]], *, write: bool) -> T:
        """Run ``operation`` in its own session, retrying transient store failures."""
        for attempt in range(1, self.max_retries + 1):
            try:
                async with self.database.session() as session:
                    if write:
                        async with session.begin():
                            return await operation(session)
                    return await operation(session)
            except ServiceError:
                raise
            except SQLAlchemyError as e:
                if not _is_transient(e):
                    logger.error(f"Store error in unit of work: {e}", exc_info=True)
                    raise UnknownFailure() from e
                logger.warning(f"Unit of work attempt {attempt} failed: {e}")
                if attempt == self.max_retries:
                    raise TransientStoreFailure() from e
                await asyncio.sleep(self.retry_delay)
        raise TransientStoreFailure()

    @staticmethod
    async def _require_participants(session: AsyncSession, caller_id: str, target_id: str) -> None:
        users = await follow_crud.lock_users(session, [caller_id, target_id])
        found = {user.id for user in users}
        for user_id in (caller_id, target_id):
            if user_id not in found:
                raise UserNotFound(user_id)

    async def follow_user(self, caller_id: str, target_id: str) -> FollowRead:
        caller_id = parse_identity(caller_id)
        target_id = parse_identity(target_id)
        if caller_id == target_id:
            raise SelfFollowRejected()

        async def operation(session: AsyncSession) -> FollowRead:
            await self._require_participants(session, caller_id, target_id)
            if await follow_crud.get_follow(session, caller_id, target_id):
                raise AlreadyFollowing()
            try:
                edge = await follow_crud.add_follow(session, caller_id, target_id)
            except IntegrityError:
                # A concurrent follow on the same pair committed first
                raise AlreadyFollowing()
            return FollowRead.model_validate(edge)

        edge = await self._run(operation, write=True)
        logger.info(f"User {caller_id} followed {target_id}")
        return edge

    async def unfollow_user(self, caller_id: str, target_id: str) -> UnfollowResult:
        """Remove the edge if present. Unfollowing a user you do not follow succeeds."""
        caller_id = parse_identity(caller_id)
        target_id = parse_identity(target_id)

        async def operation(session: AsyncSession) -> bool:
            await self._require_participants(session, caller_id, target_id)
            return await follow_crud.delete_follow(session, caller_id, target_id)

        removed = await self._run(operation, write=True)
        if removed:
            logger.info(f"User {caller_id} unfollowed {target_id}")
        return UnfollowResult(follower_id=caller_id, following_id=target_id, removed=removed)

    async def _list(self, user_id: str, query) -> List[UserSummary]:
        user_id = parse_identity(user_id)

        async def operation(session: AsyncSession) -> List[UserSummary]:
            if not await user_exists(session, user_id):
                raise UserNotFound(user_id)
            users = await query(session, user_id)
            return [UserSummary.model_validate(user) for user in users]

        return await self._run(operation, write=False)

    async def list_followers(self, user_id: str) -> List[UserSummary]:
        return await self._list(user_id, follow_crud.get_followers)

    async def list_following(self, user_id: str) -> List[UserSummary]:
        return await self._list(user_id, follow_crud.get_following)

    async def count_followers(self, user_id: str) -> int:
        return (await self.get_stats(user_id)).followers_count

    async def count_following(self, user_id: str) -> int:
        return (await self.get_stats(user_id)).following_count

    async def is_following(self, caller_id: str, target_id: str) -> bool:
        caller_id = parse_identity(caller_id)
        target_id = parse_identity(target_id)

        async def operation(session: AsyncSession) -> bool:
            return await follow_crud.get_follow(session, caller_id, target_id) is not None

        return await self._run(operation, write=False)

    async def get_stats(self, user_id: str, viewer_id: Optional[str] = None) -> FollowStats:
        user_id = parse_identity(user_id)
        viewer_id = parse_identity(viewer_id) if viewer_id else None

        async def operation(session: AsyncSession) -> FollowStats:
            if not await user_exists(session, user_id):
                raise UserNotFound(user_id)
            is_following = False
            if viewer_id and viewer_id != user_id:
                is_following = await follow_crud.get_follow(session, viewer_id, user_id) is not None
            return FollowStats(
                user_id=user_id,
                followers_count=await follow_crud.count_followers(session, user_id),
                following_count=await follow_crud.count_following(session, user_id),
                is_following=is_following,
            )

        return await self._run(operation, write=False)
