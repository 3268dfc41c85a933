from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import asc, desc, or_
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext
from vidhub.core.config import Settings
from vidhub.core.database import get_db
from vidhub.dependencies.auth import authenticate, get_settings
from vidhub.models.video import Video
from vidhub.schemas.common import MessageOut, Page
from vidhub.schemas.video import (
    PresignIn,
    PresignOut,
    PublishOut,
    SortField,
    SortOrder,
    VideoCreate,
    VideoDetailOut,
    VideoListItemOut,
    VideoOut,
    VideoUpdate,
)
from vidhub.services import likes, storage
from vidhub.services.ownership import get_owned_or_404, is_owner
from vidhub.services.pagination import PageParams, build_page, page_params, paginate
from vidhub.services.videos import get_visible_video, purge_video_dependents, record_view

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["videos"], dependencies=[Depends(authenticate)])

_SORT_COLUMNS = {
    "created_at": Video.created_at,
    "views": Video.views,
    "duration": Video.duration,
    "title": Video.title,
}


def _forbidden_file() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not authorized to use this file")


@router.get("", response_model=Page[VideoListItemOut])
def list_videos(
    query: str | None = None,
    sort_by: SortField = "created_at",
    sort_order: SortOrder = "desc",
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    qry = db.query(Video).filter(Video.is_published.is_(True))

    # Text search (title/description)
    if query:
        term = str(query).strip()
        if term:
            like = f"%{term}%"
            qry = qry.filter(or_(Video.title.ilike(like), Video.description.ilike(like)))

    column = _SORT_COLUMNS[sort_by]
    direction = asc if sort_order == "asc" else desc
    qry = qry.order_by(direction(column), direction(Video.id))

    rows, total = paginate(qry, params)
    return build_page(rows, total=total, params=params)


@router.post("/presign-upload", response_model=PresignOut)
def presign_video_upload(
    payload: PresignIn,
    identity: AuthContext = Depends(authenticate),
    settings: Settings = Depends(get_settings),
):
    storage.validate_upload(settings, payload.kind, payload.content_type, payload.size_bytes)
    result = storage.presign_upload(
        settings,
        user_id=identity.id,
        kind=payload.kind,
        filename=payload.filename,
        content_type=payload.content_type,
    )
    return {"key": result.key, "upload_url": result.upload_url, "public_url": result.public_url}


@router.post("", response_model=VideoOut, status_code=status.HTTP_201_CREATED)
def create_video(
    payload: VideoCreate,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not storage.key_belongs_to(settings, identity.id, payload.video_key, storage.VIDEO):
        raise _forbidden_file()
    if not storage.key_belongs_to(settings, identity.id, payload.thumbnail_key, storage.THUMBNAIL):
        raise _forbidden_file()

    video = Video(
        owner_id=identity.id,
        title=payload.title,
        description=payload.description,
        video_key=payload.video_key,
        video_url=storage.public_url(settings, payload.video_key),
        thumbnail_key=payload.thumbnail_key,
        thumbnail_url=storage.public_url(settings, payload.thumbnail_key),
        duration=payload.duration,
        views=0,
        is_published=False,
    )
    db.add(video)
    db.commit()
    db.refresh(video)

    logger.info("Video created: video_id=%s owner_id=%s", video.id, identity.id)
    return video


@router.get("/{video_id}", response_model=VideoDetailOut)
def get_video(
    video_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    video = get_visible_video(db, video_id, identity)
    record_view(db, video, identity)

    counts = likes.count_likes(db, target=likes.VIDEO_TARGET, target_ids=[video.id])
    mine = likes.liked_ids(db, user_id=identity.id, target=likes.VIDEO_TARGET, target_ids=[video.id])

    out = VideoDetailOut.model_validate(video)
    out.likes_count = counts.get(video.id, 0)
    out.is_liked = video.id in mine
    out.is_owner = is_owner(video, identity)
    return out


@router.patch("/{video_id}", response_model=VideoOut)
def update_video(
    video_id: int,
    payload: VideoUpdate,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    video = get_owned_or_404(db, Video, video_id, identity, label="Video", action="update this video")

    data = payload.model_dump(exclude_unset=True)
    old_thumbnail_key = None

    if data.get("title") is not None:
        video.title = data["title"].strip()
    if data.get("description") is not None:
        video.description = data["description"].strip()
    if data.get("thumbnail_key") is not None and data["thumbnail_key"] != video.thumbnail_key:
        if not storage.key_belongs_to(settings, identity.id, data["thumbnail_key"], storage.THUMBNAIL):
            raise _forbidden_file()
        old_thumbnail_key = video.thumbnail_key
        video.thumbnail_key = data["thumbnail_key"]
        video.thumbnail_url = storage.public_url(settings, data["thumbnail_key"])

    db.commit()
    db.refresh(video)

    if old_thumbnail_key:
        storage.delete_objects_quietly(settings, [old_thumbnail_key])
    return video


@router.delete("/{video_id}", response_model=MessageOut)
def delete_video(
    video_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    video = get_owned_or_404(db, Video, video_id, identity, label="Video", action="delete this video")
    keys = [video.video_key, video.thumbnail_key]

    try:
        purge_video_dependents(db, video.id)
        db.delete(video)
        db.commit()
    except Exception:
        db.rollback()
        raise

    # DB is authoritative; storage leftovers are only logged.
    failed = storage.delete_objects_quietly(settings, keys)
    if failed:
        logger.warning("Video deleted with %s storage object(s) left behind: video_id=%s", failed, video_id)
    return {"message": "Video deleted successfully"}


@router.patch("/{video_id}/toggle-publish", response_model=PublishOut)
def toggle_publish(
    video_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    video = get_owned_or_404(
        db, Video, video_id, identity, label="Video", action="change the publish status of this video"
    )
    video.is_published = not bool(video.is_published)
    db.commit()
    db.refresh(video)
    return {"id": video.id, "is_published": video.is_published}
