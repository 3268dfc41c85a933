from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from vidhub.models.like import Like
from vidhub.models.video import Video
from vidhub.services.follows import followers_count


def channel_stats(db: Session, user_id: int) -> dict[str, int]:
    """
    Totals across every video the user owns, published or not.
    """
    total_videos, total_views = (
        db.query(func.count(Video.id), func.coalesce(func.sum(Video.views), 0))
        .filter(Video.owner_id == user_id)
        .one()
    )
    total_likes = (
        db.query(func.count(Like.id))
        .join(Video, Video.id == Like.video_id)
        .filter(Video.owner_id == user_id)
        .scalar()
    )
    return {
        "total_videos": int(total_videos or 0),
        "total_views": int(total_views or 0),
        "total_followers": followers_count(db, user_id),
        "total_likes": int(total_likes or 0),
    }
