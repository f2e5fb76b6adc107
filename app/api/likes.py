from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.security import get_current_user
from app.crud.like import get_likers, like_post, unlike_post
from app.db.database import get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.like import LikeList, LikeRead
from app.schemas.user import UserSummary

router = APIRouter(prefix="/like", tags=["Likes"])


@router.post("/{post_id}", response_model=ApiResponse[LikeRead], status_code=status.HTTP_201_CREATED)
async def like(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    like_entry = await like_post(db, current_user, post_id)
    return ApiResponse(message="Post liked successfully", data=LikeRead.model_validate(like_entry))


@router.delete("/{post_id}", response_model=ApiResponse[None])
async def unlike(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await unlike_post(db, current_user.id, post_id)
    return ApiResponse(message="Post unliked successfully")


@router.get("/{post_id}", response_model=ApiResponse[LikeList])
async def read_likes(post_id: str, db: AsyncSession = Depends(get_db)):
    users = await get_likers(db, post_id)
    summaries = [UserSummary.model_validate(user) for user in users]
    return ApiResponse(
        message="Likes retrieved",
        data=LikeList(post_id=post_id, users=summaries, total=len(summaries)),
    )
