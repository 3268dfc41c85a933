from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidhub.models.like import Like

logger = logging.getLogger(__name__)

VIDEO_TARGET = "video_id"
COMMENT_TARGET = "comment_id"
POST_TARGET = "community_post_id"

_TARGETS = {VIDEO_TARGET, COMMENT_TARGET, POST_TARGET}


def _column(target: str):
    if target not in _TARGETS:
        raise ValueError(f"Unknown like target: {target}")
    return getattr(Like, target)


def toggle_like(db: Session, *, user_id: int, target: str, target_id: int) -> bool:
    """
    Conditional delete first; insert only if nothing was deleted.
    Returns the resulting state (True = liked).
    """
    column = _column(target)
    deleted = (
        db.query(Like)
        .filter(Like.liked_by_id == user_id, column == target_id)
        .delete(synchronize_session=False)
    )
    if deleted:
        db.commit()
        return False

    db.add(Like(liked_by_id=user_id, **{target: target_id}))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent toggle inserted the same row first; the caller still ends up liked.
        db.rollback()
        logger.info("Like insert raced: user_id=%s %s=%s", user_id, target, target_id)
    return True


def count_likes(db: Session, *, target: str, target_ids: Iterable[int]) -> dict[int, int]:
    ids = list(target_ids)
    if not ids:
        return {}
    column = _column(target)
    rows = (
        db.query(column, func.count(Like.id))
        .filter(column.in_(ids))
        .group_by(column)
        .all()
    )
    return {int(tid): int(n) for tid, n in rows}


def liked_ids(db: Session, *, user_id: int | None, target: str, target_ids: Iterable[int]) -> set[int]:
    ids = list(target_ids)
    if user_id is None or not ids:
        return set()
    column = _column(target)
    rows = db.query(column).filter(Like.liked_by_id == user_id, column.in_(ids)).all()
    return {int(r[0]) for r in rows}


def delete_likes(db: Session, *, target: str, target_ids: Iterable[int]) -> int:
    ids = list(target_ids)
    if not ids:
        return 0
    column = _column(target)
    return db.query(Like).filter(column.in_(ids)).delete(synchronize_session=False)
