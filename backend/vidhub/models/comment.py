from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vidhub.core.base import Base


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        # Exactly one parent: a video or a community post.
        CheckConstraint(
            "(video_id IS NULL) <> (community_post_id IS NULL)",
            name="ck_comments_single_parent",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    video_id = Column(
        Integer,
        ForeignKey("videos.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    community_post_id = Column(
        Integer,
        ForeignKey("community_posts.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    owner = relationship("User")
    video = relationship("Video", back_populates="comments")
