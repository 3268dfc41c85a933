from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vidhub.schemas.user import UserSummaryOut


class CommunityPostIn(BaseModel):
    content: str = Field(min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Post content is required")
        return v


class CommunityPostOut(BaseModel):
    id: int
    owner_id: int
    content: str
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CommunityPostDetailOut(CommunityPostOut):
    owner: UserSummaryOut | None = None
    likes_count: int = 0
    is_liked: bool = False
