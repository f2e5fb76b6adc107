from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import SQLModel, Field

from app.models.user import utc_now


class Follow(SQLModel, table=True):
    """Directed follow edge. The composite primary key makes each pair unique."""
    __table_args__ = (
        CheckConstraint("follower_id <> following_id", name="ck_follow_no_self_follow"),
    )

    follower_id: str = Field(
        foreign_key="user.id",
        primary_key=True,
        index=True  # For faster following queries
    )
    following_id: str = Field(
        foreign_key="user.id",
        primary_key=True,
        index=True  # For faster follower queries
    )
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), index=True)
