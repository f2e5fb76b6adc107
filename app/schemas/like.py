from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict

from app.schemas.user import UserSummary


class LikeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    post_id: str
    created_at: datetime


class LikeList(BaseModel):
    post_id: str
    users: List[UserSummary]
    total: int
