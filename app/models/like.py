from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from app.models.user import utc_now


class Like(SQLModel, table=True):
    """One like per (user, post); the composite primary key rejects duplicates."""
    user_id: str = Field(foreign_key="user.id", primary_key=True)
    post_id: str = Field(foreign_key="post.id", primary_key=True, index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
