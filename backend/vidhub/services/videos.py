from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext
from vidhub.models.comment import Comment
from vidhub.models.playlist import PlaylistVideo
from vidhub.models.video import Video
from vidhub.models.watch_history import WatchHistory
from vidhub.services import likes
from vidhub.services.ownership import is_owner

logger = logging.getLogger(__name__)


def get_visible_video(db: Session, video_id: int, identity: AuthContext | None) -> Video:
    """
    Unpublished videos exist only for their owner; everyone else gets a 404.
    """
    video = db.query(Video).filter(Video.id == video_id).first()
    if not video or (not video.is_published and not is_owner(video, identity)):
        raise HTTPException(status_code=404, detail="Video not found")
    return video


def record_view(db: Session, video: Video, identity: AuthContext | None) -> None:
    """
    Owners watching their own video don't count. Other viewers bump the counter
    atomically and, when signed in, refresh their watch-history row.
    """
    if is_owner(video, identity):
        return

    db.query(Video).filter(Video.id == video.id).update(
        {Video.views: Video.views + 1},
        synchronize_session=False,
    )
    db.commit()
    if identity is not None:
        _touch_watch_history(db, user_id=identity.id, video_id=video.id)
    db.refresh(video)


def _touch_watch_history(db: Session, *, user_id: int, video_id: int) -> None:
    now = datetime.now(timezone.utc)
    updated = (
        db.query(WatchHistory)
        .filter(WatchHistory.user_id == user_id, WatchHistory.video_id == video_id)
        .update({WatchHistory.watched_at: now}, synchronize_session=False)
    )
    if not updated:
        db.add(WatchHistory(user_id=user_id, video_id=video_id, watched_at=now))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Watch history insert raced: user_id=%s video_id=%s", user_id, video_id)


def purge_video_dependents(db: Session, video_id: int) -> None:
    """
    Removes likes on the video and on its comments, its comments and its
    playlist entries. Does not commit.
    """
    comment_ids = [r[0] for r in db.query(Comment.id).filter(Comment.video_id == video_id).all()]
    likes.delete_likes(db, target=likes.COMMENT_TARGET, target_ids=comment_ids)
    likes.delete_likes(db, target=likes.VIDEO_TARGET, target_ids=[video_id])
    db.query(Comment).filter(Comment.video_id == video_id).delete(synchronize_session=False)
    db.query(PlaylistVideo).filter(PlaylistVideo.video_id == video_id).delete(synchronize_session=False)
    db.query(WatchHistory).filter(WatchHistory.video_id == video_id).delete(synchronize_session=False)
