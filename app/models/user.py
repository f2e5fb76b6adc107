import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

DEFAULT_PROFILE_IMAGE_URL = "https://ik.imagekit.io/Bharat/default-user-profile-icon.avif"


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserBase(SQLModel):
    """Base fields shared across user tables and schemas"""
    username: str = Field(..., min_length=3, max_length=30, unique=True, index=True)
    email: str = Field(..., max_length=255, unique=True, index=True)
    bio: str = Field(default="", max_length=500)
    profile_image_url: str = Field(default=DEFAULT_PROFILE_IMAGE_URL, max_length=500)


class User(UserBase, table=True):
    """Persisted user record. Credential material lives only in ``hashed_password``."""
    id: str = Field(default_factory=generate_uuid, primary_key=True)
    hashed_password: str
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
