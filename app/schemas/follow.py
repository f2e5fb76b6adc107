from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict

from app.schemas.user import UserSummary


class FollowRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    follower_id: str
    following_id: str
    created_at: datetime


class UnfollowResult(BaseModel):
    follower_id: str
    following_id: str
    removed: bool


class FollowList(BaseModel):
    users: List[UserSummary]
    total: int


class FollowStats(BaseModel):
    user_id: str
    followers_count: int
    following_count: int
    is_following: bool = False
