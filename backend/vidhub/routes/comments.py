from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload

from vidhub.auth.identity import AuthContext
from vidhub.core.database import get_db
from vidhub.dependencies.auth import authenticate
from vidhub.models.comment import Comment
from vidhub.models.community_post import CommunityPost
from vidhub.schemas.comment import CommentDetailOut, CommentIn, CommentOut
from vidhub.schemas.common import MessageOut, Page
from vidhub.services import likes
from vidhub.services.ownership import get_or_404, get_owned_or_404
from vidhub.services.pagination import PageParams, build_page, page_params, paginate
from vidhub.services.videos import get_visible_video

router = APIRouter(prefix="/comments", tags=["comments"], dependencies=[Depends(authenticate)])


def _with_likes(db: Session, comments: list[Comment], identity: AuthContext) -> list[CommentDetailOut]:
    ids = [c.id for c in comments]
    counts = likes.count_likes(db, target=likes.COMMENT_TARGET, target_ids=ids)
    mine = likes.liked_ids(db, user_id=identity.id, target=likes.COMMENT_TARGET, target_ids=ids)

    out: list[CommentDetailOut] = []
    for c in comments:
        item = CommentDetailOut.model_validate(c)
        item.likes_count = counts.get(c.id, 0)
        item.is_liked = c.id in mine
        out.append(item)
    return out


def _list(db: Session, identity: AuthContext, params: PageParams, *, parent_filter) -> dict:
    qry = (
        db.query(Comment)
        .options(joinedload(Comment.owner))
        .filter(parent_filter)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    rows, total = paginate(qry, params)
    return build_page(_with_likes(db, rows, identity), total=total, params=params)


def _add(db: Session, identity: AuthContext, payload: CommentIn, **parent) -> Comment:
    comment = Comment(owner_id=identity.id, content=payload.content, **parent)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


# -----------------------------
# Video comments
# -----------------------------
@router.get("/video/{video_id}", response_model=Page[CommentDetailOut])
def list_video_comments(
    video_id: int,
    identity: AuthContext = Depends(authenticate),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    get_visible_video(db, video_id, identity)
    return _list(db, identity, params, parent_filter=Comment.video_id == video_id)


@router.post("/video/{video_id}", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def add_video_comment(
    video_id: int,
    payload: CommentIn,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    get_visible_video(db, video_id, identity)
    return _add(db, identity, payload, video_id=video_id)


# -----------------------------
# Community post comments
# -----------------------------
@router.get("/post/{post_id}", response_model=Page[CommentDetailOut])
def list_post_comments(
    post_id: int,
    identity: AuthContext = Depends(authenticate),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    get_or_404(db, CommunityPost, post_id, label="Community post")
    return _list(db, identity, params, parent_filter=Comment.community_post_id == post_id)


@router.post("/post/{post_id}", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def add_post_comment(
    post_id: int,
    payload: CommentIn,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    get_or_404(db, CommunityPost, post_id, label="Community post")
    return _add(db, identity, payload, community_post_id=post_id)


# -----------------------------
# Single comment
# -----------------------------
@router.patch("/{comment_id}", response_model=CommentOut)
def update_comment(
    comment_id: int,
    payload: CommentIn,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    comment = get_owned_or_404(db, Comment, comment_id, identity, label="Comment", action="edit this comment")
    comment.content = payload.content
    db.commit()
    db.refresh(comment)
    return comment


@router.delete("/{comment_id}", response_model=MessageOut)
def delete_comment(
    comment_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    comment = get_owned_or_404(db, Comment, comment_id, identity, label="Comment", action="delete this comment")
    try:
        likes.delete_likes(db, target=likes.COMMENT_TARGET, target_ids=[comment.id])
        db.delete(comment)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return {"message": "Comment deleted successfully"}
