from datetime import datetime
from typing import List

from pydantic import BaseModel

from app.schemas.user import UserSummary


class PostRead(BaseModel):
    id: str
    caption: str
    image_url: str
    created_at: datetime
    user: UserSummary
    like_count: int = 0


class PostList(BaseModel):
    posts: List[PostRead]
    total: int
