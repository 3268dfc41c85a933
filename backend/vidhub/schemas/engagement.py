from pydantic import BaseModel


class LikeToggleOut(BaseModel):
    is_liked: bool


class FollowToggleOut(BaseModel):
    is_followed: bool


class DashboardStatsOut(BaseModel):
    total_videos: int
    total_views: int
    total_followers: int
    total_likes: int
