from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload

from vidhub.auth.identity import AuthContext
from vidhub.core.config import Settings
from vidhub.core.database import get_db
from vidhub.dependencies.auth import authenticate, get_current_account, get_settings, optional_identity
from vidhub.models.user import User
from vidhub.models.video import Video
from vidhub.models.watch_history import WatchHistory
from vidhub.schemas.auth import AccountOut
from vidhub.schemas.common import Page
from vidhub.schemas.user import ProfileOut, UpdateEmailIn, UpdateNameIn, UpdateProfileImageIn
from vidhub.schemas.video import AvatarPresignIn, PresignOut, VideoListItemOut
from vidhub.services import accounts, storage
from vidhub.services.follows import followers_count, following_count, is_following
from vidhub.services.pagination import PageParams, build_page, page_params, paginate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile/{username}", response_model=ProfileOut)
def get_profile(
    username: str,
    db: Session = Depends(get_db),
    identity: AuthContext | None = Depends(optional_identity),
):
    user = accounts.find_by_username(db, username)
    if not user or not user.is_verified:
        raise HTTPException(status_code=404, detail="User not found")

    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "profile_image": user.profile_image,
        "created_at": user.created_at,
        "followers_count": followers_count(db, user.id),
        "following_count": following_count(db, user.id),
        "is_followed_by_me": is_following(
            db,
            follower_id=identity.id if identity else None,
            following_id=user.id,
        ),
    }


@router.patch("/me/name", response_model=AccountOut)
def update_name(
    payload: UpdateNameIn,
    user: User = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    user.name = payload.name
    return accounts.save(db, user)


@router.patch("/me/email", response_model=AccountOut)
def update_email(
    payload: UpdateEmailIn,
    user: User = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    if payload.email == user.email:
        return user

    existing = accounts.find_by_email(db, payload.email)
    if existing and existing.id != user.id:
        raise HTTPException(status_code=409, detail="Email is already in use")

    user.email = payload.email
    return accounts.save(db, user)


@router.post("/me/profile-image/presign-upload", response_model=PresignOut)
def presign_profile_image(
    payload: AvatarPresignIn,
    identity: AuthContext = Depends(authenticate),
    settings: Settings = Depends(get_settings),
):
    storage.validate_upload(settings, storage.AVATAR, payload.content_type, payload.size_bytes)
    result = storage.presign_upload(
        settings,
        user_id=identity.id,
        kind=storage.AVATAR,
        filename=payload.filename,
        content_type=payload.content_type,
    )
    return {"key": result.key, "upload_url": result.upload_url, "public_url": result.public_url}


@router.patch("/me/profile-image", response_model=AccountOut)
def update_profile_image(
    payload: UpdateProfileImageIn,
    user: User = Depends(get_current_account),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not storage.key_belongs_to(settings, user.id, payload.key, storage.AVATAR):
        raise HTTPException(status_code=403, detail="You are not authorized to use this file")

    previous = user.profile_image
    user.profile_image = storage.public_url(settings, payload.key)
    accounts.save(db, user)

    # Only remove avatars we uploaded; the generated default lives elsewhere.
    old_key = storage.key_from_public_url(settings, previous)
    if old_key and old_key != payload.key and storage.key_belongs_to(settings, user.id, old_key, storage.AVATAR):
        storage.delete_objects_quietly(settings, [old_key])
    return user


@router.get("/me/watch-history", response_model=Page[VideoListItemOut])
def watch_history(
    identity: AuthContext = Depends(authenticate),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    qry = (
        db.query(WatchHistory)
        .join(Video, Video.id == WatchHistory.video_id)
        .options(joinedload(WatchHistory.video))
        .filter(WatchHistory.user_id == identity.id, Video.is_published.is_(True))
        .order_by(WatchHistory.watched_at.desc(), WatchHistory.id.desc())
    )
    rows, total = paginate(qry, params)
    return build_page([r.video for r in rows], total=total, params=params)
