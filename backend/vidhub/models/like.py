from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vidhub.core.base import Base


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (
        # NULLs are distinct in unique indexes, so each target kind gets its own constraint.
        UniqueConstraint("liked_by_id", "video_id", name="uq_likes_liked_by_video"),
        UniqueConstraint("liked_by_id", "comment_id", name="uq_likes_liked_by_comment"),
        UniqueConstraint("liked_by_id", "community_post_id", name="uq_likes_liked_by_community_post"),
    )

    id = Column(Integer, primary_key=True, index=True)

    liked_by_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    video_id = Column(Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=True, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)
    community_post_id = Column(
        Integer,
        ForeignKey("community_posts.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    video = relationship("Video", back_populates="likes")
