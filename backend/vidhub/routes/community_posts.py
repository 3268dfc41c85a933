from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext
from vidhub.core.database import get_db
from vidhub.dependencies.auth import authenticate
from vidhub.models.comment import Comment
from vidhub.models.community_post import CommunityPost
from vidhub.models.user import User
from vidhub.schemas.common import MessageOut, Page
from vidhub.schemas.community_post import CommunityPostDetailOut, CommunityPostIn, CommunityPostOut
from vidhub.services import likes
from vidhub.services.ownership import get_owned_or_404
from vidhub.services.pagination import PageParams, build_page, page_params, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/community-posts", tags=["community-posts"], dependencies=[Depends(authenticate)])


@router.post("", response_model=CommunityPostOut, status_code=status.HTTP_201_CREATED)
def create_post(
    payload: CommunityPostIn,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    post = CommunityPost(owner_id=identity.id, content=payload.content)
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


@router.get("/user/{user_id}", response_model=Page[CommunityPostDetailOut])
def list_user_posts(
    user_id: int,
    identity: AuthContext = Depends(authenticate),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    if not db.query(User.id).filter(User.id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")

    qry = (
        db.query(CommunityPost)
        .filter(CommunityPost.owner_id == user_id)
        .order_by(CommunityPost.created_at.desc(), CommunityPost.id.desc())
    )
    rows, total = paginate(qry, params)

    ids = [p.id for p in rows]
    counts = likes.count_likes(db, target=likes.POST_TARGET, target_ids=ids)
    mine = likes.liked_ids(db, user_id=identity.id, target=likes.POST_TARGET, target_ids=ids)

    items = []
    for p in rows:
        item = CommunityPostDetailOut.model_validate(p)
        item.likes_count = counts.get(p.id, 0)
        item.is_liked = p.id in mine
        items.append(item)
    return build_page(items, total=total, params=params)


@router.patch("/{post_id}", response_model=CommunityPostOut)
def update_post(
    post_id: int,
    payload: CommunityPostIn,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    post = get_owned_or_404(db, CommunityPost, post_id, identity, label="Post", action="edit this post")
    post.content = payload.content
    db.commit()
    db.refresh(post)
    return post


@router.delete("/{post_id}", response_model=MessageOut)
def delete_post(
    post_id: int,
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    post = get_owned_or_404(db, CommunityPost, post_id, identity, label="Post", action="delete this post")

    db.delete(post)
    db.commit()

    # The post is gone; leftover likes/comments are orphans and only logged if cleanup fails.
    try:
        comment_ids = [r[0] for r in db.query(Comment.id).filter(Comment.community_post_id == post_id).all()]
        likes.delete_likes(db, target=likes.COMMENT_TARGET, target_ids=comment_ids)
        likes.delete_likes(db, target=likes.POST_TARGET, target_ids=[post_id])
        db.query(Comment).filter(Comment.community_post_id == post_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Community post cleanup failed: post_id=%s", post_id)

    return {"message": "Post deleted successfully"}
