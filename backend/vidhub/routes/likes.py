from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext
from vidhub.core.database import get_db
from vidhub.dependencies.auth import authenticate
from vidhub.models.comment import Comment
from vidhub.models.community_post import CommunityPost
from vidhub.models.like import Like
from vidhub.models.video import Video
from vidhub.schemas.common import Page
from vidhub.schemas.engagement import LikeToggleOut
from vidhub.schemas.video import VideoListItemOut
from vidhub.services import likes
from vidhub.services.ownership import get_or_404
from vidhub.services.pagination import PageParams, build_page, page_params, paginate
from vidhub.services.videos import get_visible_video

router = APIRouter(prefix="/likes", tags=["likes"], dependencies=[Depends(authenticate)])


@router.post("/video/{video_id}", response_model=LikeToggleOut)
def toggle_video_like(
    video_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    get_visible_video(db, video_id, identity)
    liked = likes.toggle_like(db, user_id=identity.id, target=likes.VIDEO_TARGET, target_id=video_id)
    return {"is_liked": liked}


@router.post("/comment/{comment_id}", response_model=LikeToggleOut)
def toggle_comment_like(
    comment_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    comment = get_or_404(db, Comment, comment_id, label="Comment")
    if comment.video_id is not None:
        get_visible_video(db, comment.video_id, identity)
    liked = likes.toggle_like(db, user_id=identity.id, target=likes.COMMENT_TARGET, target_id=comment_id)
    return {"is_liked": liked}


@router.post("/post/{post_id}", response_model=LikeToggleOut)
def toggle_post_like(
    post_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    get_or_404(db, CommunityPost, post_id, label="Community post")
    liked = likes.toggle_like(db, user_id=identity.id, target=likes.POST_TARGET, target_id=post_id)
    return {"is_liked": liked}


@router.get("/videos", response_model=Page[VideoListItemOut])
def liked_videos(
    identity: AuthContext = Depends(authenticate),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    qry = (
        db.query(Video)
        .join(Like, Like.video_id == Video.id)
        .filter(Like.liked_by_id == identity.id, Video.is_published.is_(True))
        .order_by(Like.created_at.desc(), Like.id.desc())
    )
    rows, total = paginate(qry, params)
    return build_page(rows, total=total, params=params)
