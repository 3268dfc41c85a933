from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidhub.models.follow import Follow

logger = logging.getLogger(__name__)


def toggle_follow(db: Session, *, follower_id: int, following_id: int) -> bool:
    """
    Same shape as toggle_like: delete if present, otherwise insert.
    Returns the resulting state (True = following).
    """
    if follower_id == following_id:
        raise HTTPException(status_code=400, detail="You cannot follow yourself")

    deleted = (
        db.query(Follow)
        .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)
        .delete(synchronize_session=False)
    )
    if deleted:
        db.commit()
        return False

    db.add(Follow(follower_id=follower_id, following_id=following_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Follow insert raced: follower_id=%s following_id=%s", follower_id, following_id)
    return True


def followers_count(db: Session, user_id: int) -> int:
    return db.query(Follow).filter(Follow.following_id == user_id).count()


def following_count(db: Session, user_id: int) -> int:
    return db.query(Follow).filter(Follow.follower_id == user_id).count()


def is_following(db: Session, *, follower_id: int | None, following_id: int) -> bool:
    if follower_id is None:
        return False
    return (
        db.query(Follow.id)
        .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)
        .first()
        is not None
    )
