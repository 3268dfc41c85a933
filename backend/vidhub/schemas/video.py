from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vidhub.schemas.user import UserSummaryOut

UploadKind = Literal["video", "thumbnail"]
SortField = Literal["created_at", "views", "duration", "title"]
SortOrder = Literal["asc", "desc"]


def _strip_required(v: str, label: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{label} is required")
    return v


# ---------- INPUT SCHEMAS ----------

class PresignIn(BaseModel):
    kind: UploadKind
    filename: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=1, max_length=100)
    size_bytes: int = Field(
        gt=0,
        description="File size in bytes (validated server-side)",
    )


class AvatarPresignIn(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=1, max_length=100)
    size_bytes: int = Field(gt=0)


class VideoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    video_key: str = Field(min_length=1, max_length=512)
    thumbnail_key: str = Field(min_length=1, max_length=512)
    duration: float = Field(default=0, ge=0)

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _strip_required(v, "Title")

    @field_validator("description")
    @classmethod
    def _description(cls, v: str) -> str:
        return _strip_required(v, "Description")


class VideoUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=5000)
    thumbnail_key: str | None = Field(default=None, min_length=1, max_length=512)

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, v: str | None, info) -> str | None:
        if v is None:
            return v
        return _strip_required(v, info.field_name.capitalize())


# ---------- OUTPUT SCHEMAS ----------

class PresignOut(BaseModel):
    key: str
    upload_url: str
    public_url: str


class VideoOut(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str | None = None
    video_url: str
    thumbnail_url: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class VideoListItemOut(VideoOut):
    owner: UserSummaryOut | None = None


class VideoDetailOut(VideoListItemOut):
    likes_count: int = 0
    is_liked: bool = False
    is_owner: bool = False


class PublishOut(BaseModel):
    id: int
    is_published: bool
