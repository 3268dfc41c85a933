from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vidhub.schemas.user import UserSummaryOut


class CommentIn(BaseModel):
    content: str = Field(min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment content is required")
        return v


class CommentOut(BaseModel):
    id: int
    owner_id: int
    video_id: int | None = None
    community_post_id: int | None = None
    content: str
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CommentDetailOut(CommentOut):
    owner: UserSummaryOut | None = None
    likes_count: int = 0
    is_liked: bool = False
