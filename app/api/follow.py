from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from app.core.security import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.follow import FollowList, FollowRead, FollowStats, UnfollowResult
from app.services.follow import FollowService

router = APIRouter(prefix="/follow", tags=["follow"])


def get_follow_service(request: Request) -> FollowService:
    return request.app.state.follow_service


@router.post("/{user_id}", response_model=ApiResponse[FollowRead], status_code=status.HTTP_201_CREATED)
async def follow_user(
    user_id: str,
    service: FollowService = Depends(get_follow_service),
    current_user: User = Depends(get_current_user)
):
    edge = await service.follow_user(current_user.id, user_id)
    return ApiResponse(message="User followed successfully", data=edge)


@router.delete("/{user_id}", response_model=ApiResponse[UnfollowResult])
async def unfollow_user(
    user_id: str,
    service: FollowService = Depends(get_follow_service),
    current_user: User = Depends(get_current_user)
):
    result = await service.unfollow_user(current_user.id, user_id)
    message = "User unfollowed successfully" if result.removed else "You were not following this user"
    return ApiResponse(message=message, data=result)


@router.get("/followers/{user_id}", response_model=ApiResponse[FollowList])
async def get_followers(
    user_id: str,
    service: FollowService = Depends(get_follow_service)
):
    users = await service.list_followers(user_id)
    return ApiResponse(message="Followers retrieved", data=FollowList(users=users, total=len(users)))


@router.get("/following/{user_id}", response_model=ApiResponse[FollowList])
async def get_following(
    user_id: str,
    service: FollowService = Depends(get_follow_service)
):
    users = await service.list_following(user_id)
    return ApiResponse(message="Following retrieved", data=FollowList(users=users, total=len(users)))


@router.get("/{user_id}/stats", response_model=ApiResponse[FollowStats])
async def get_follow_stats(
    user_id: str,
    service: FollowService = Depends(get_follow_service),
    current_user: Optional[User] = Depends(get_optional_user)
):
    stats = await service.get_stats(user_id, viewer_id=current_user.id if current_user else None)
    return ApiResponse(message="Follow stats retrieved", data=stats)
