from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext
from vidhub.core.database import get_db
from vidhub.dependencies.auth import authenticate
from vidhub.models.follow import Follow
from vidhub.models.user import User
from vidhub.schemas.common import Page
from vidhub.schemas.engagement import FollowToggleOut
from vidhub.schemas.user import FollowEntryOut
from vidhub.services.follows import toggle_follow
from vidhub.services.pagination import PageParams, build_page, page_params, paginate

router = APIRouter(prefix="/follows", tags=["follows"], dependencies=[Depends(authenticate)])


def _require_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id, User.is_verified.is_(True)).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _entries(rows: list[tuple[User, object]]) -> list[dict]:
    return [
        {
            "id": u.id,
            "username": u.username,
            "name": u.name,
            "profile_image": u.profile_image,
            "followed_at": followed_at,
        }
        for u, followed_at in rows
    ]


@router.post("/{user_id}/toggle", response_model=FollowToggleOut)
def toggle(
    user_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    _require_user(db, user_id)
    followed = toggle_follow(db, follower_id=identity.id, following_id=user_id)
    return {"is_followed": followed}


@router.get("/{user_id}/followers", response_model=Page[FollowEntryOut])
def list_followers(
    user_id: int,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    _require_user(db, user_id)
    qry = (
        db.query(User, Follow.created_at)
        .join(Follow, Follow.follower_id == User.id)
        .filter(Follow.following_id == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
    )
    rows, total = paginate(qry, params)
    return build_page(_entries(rows), total=total, params=params)


@router.get("/{user_id}/following", response_model=Page[FollowEntryOut])
def list_following(
    user_id: int,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    _require_user(db, user_id)
    qry = (
        db.query(User, Follow.created_at)
        .join(Follow, Follow.following_id == User.id)
        .filter(Follow.follower_id == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
    )
    rows, total = paginate(qry, params)
    return build_page(_entries(rows), total=total, params=params)
