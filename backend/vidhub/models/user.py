# vidhub/models/user.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from vidhub.core.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Both stored trimmed + lower-cased so lookups are case-insensitive.
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    name = Column(String(100), nullable=False)
    profile_image = Column(String(500), nullable=True)

    password_hash = Column(String(255), nullable=False)

    is_verified = Column(Boolean, nullable=False, default=False, server_default="false")
    verification_code_hash = Column(String(128), nullable=True)
    verification_expires_at = Column(DateTime(timezone=True), nullable=True)

    reset_code_hash = Column(String(128), nullable=True)
    reset_expires_at = Column(DateTime(timezone=True), nullable=True)

    # Digest of the single refresh token currently honoured for this account.
    refresh_token_hash = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    videos = relationship("Video", back_populates="owner", cascade="all, delete-orphan")
    playlists = relationship("Playlist", back_populates="owner", cascade="all, delete-orphan")
    community_posts = relationship("CommunityPost", back_populates="owner", cascade="all, delete-orphan")
