from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    bio: Optional[str] = Field(default="", max_length=500)
    image_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters")
        if any(c.isspace() for c in v):
            raise ValueError("Username cannot contain whitespace")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserSummary(BaseModel):
    """Public-safe view of a user: no email, no credential hash"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    bio: Optional[str] = ""
    profile_image_url: Optional[str] = None


class UserRead(UserSummary):
    """The caller's own profile"""
    email: str
    created_at: datetime
