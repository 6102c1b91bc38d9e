"""Profile model for public profile pages."""

from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from database import Base


class Profile(Base):
    """Customizable public profile keyed by a unique username."""

    __tablename__ = "profiles"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=True)
    username = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    profile_picture = Column(Text, nullable=True)  # upload path or inline data URI
    background_video = Column(Text, nullable=True)
    background_video_muted = Column(Integer, nullable=False, default=1)
    background_audio = Column(Text, nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
    snapchat = Column(String, nullable=True)
    discord = Column(String, nullable=True)
    twitter = Column(String, nullable=True)
    instagram = Column(String, nullable=True)
    tiktok = Column(String, nullable=True)
    youtube = Column(String, nullable=True)
    github = Column(String, nullable=True)
    twitch = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="profiles")
