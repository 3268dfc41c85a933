# vidhub/models/video.py
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vidhub.core.base import Base


class Video(Base):
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)

    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # Object storage keys (for cleanup) + public URLs (for clients)
    video_key = Column(String(512), nullable=False)
    video_url = Column(String(1024), nullable=False)
    thumbnail_key = Column(String(512), nullable=False)
    thumbnail_url = Column(String(1024), nullable=False)

    duration = Column(Float, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0, server_default="0")
    is_published = Column(Boolean, nullable=False, default=False, server_default="false")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    owner = relationship("User", back_populates="videos")

    comments = relationship("Comment", back_populates="video", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", back_populates="video", cascade="all, delete-orphan", passive_deletes=True)
