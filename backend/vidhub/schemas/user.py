from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserSummaryOut(BaseModel):
    id: int
    username: str
    name: str
    profile_image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileOut(UserSummaryOut):
    created_at: datetime | None = None
    followers_count: int = 0
    following_count: int = 0
    is_followed_by_me: bool = False


class UpdateNameIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class UpdateEmailIn(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class UpdateProfileImageIn(BaseModel):
    key: str = Field(min_length=1, max_length=512)


class FollowEntryOut(UserSummaryOut):
    followed_at: datetime | None = None
