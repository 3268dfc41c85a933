from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vidhub.schemas.video import VideoListItemOut


class PlaylistIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=5000)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Playlist name is required")
        return v


class PlaylistUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=5000)


class PlaylistOut(BaseModel):
    id: int
    owner_id: int
    name: str
    description: str
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PlaylistSummaryOut(PlaylistOut):
    total_videos: int = 0
    thumbnail_url: str | None = None


class PlaylistDetailOut(PlaylistOut):
    total_videos: int = 0
    videos: list[VideoListItemOut] = []
