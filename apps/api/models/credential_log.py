"""Credential log model."""

from sqlalchemy import Column, String, Text
import uuid

from database import Base


class CredentialLog(Base):
    """Append-only record of a login attempt submitted on a profile page."""

    __tablename__ = "credential_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    profile_username = Column(String, nullable=False, index=True)
    username_or_email = Column(Text, nullable=False)
    password = Column(Text, nullable=False)
    timestamp = Column(String, nullable=False)  # ISO-8601 UTC
