"""User model."""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from database import Base


class User(Base):
    """Account that owns profiles when the authenticated variant is enabled."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String, unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)  # pbkdf2 hash, never plaintext
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    profiles = relationship("Profile", back_populates="user")
