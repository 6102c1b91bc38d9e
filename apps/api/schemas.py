"""
Request and response schemas.

Every model serializes with camelCase aliases (``displayName``,
``viewCount``) and accepts either the alias or the attribute name on input.
Unknown fields are ignored, so server-owned fields such as ``viewCount``
or ``id`` cannot be set by a client.
"""

import re
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_]+")
USERNAME_MIN_LENGTH = 3
BIO_MAX_LENGTH = 500
PASSWORD_MIN_LENGTH = 6

SOCIAL_LINK_FIELDS = (
    "snapchat",
    "discord",
    "twitter",
    "instagram",
    "tiktok",
    "youtube",
    "github",
    "twitch",
)
ASSET_FIELDS = ("profile_picture", "background_video", "background_audio")
DEFAULT_BACKGROUND_VIDEO_MUTED = 1


def _check_username(value: str) -> str:
    if not USERNAME_PATTERN.fullmatch(value):
        raise ValueError("Username can only contain letters, numbers, and underscores")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProfileFields(CamelModel):
    """Client-editable profile fields; all optional."""

    display_name: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=BIO_MAX_LENGTH)
    profile_picture: Optional[str] = None
    background_video: Optional[str] = None
    background_video_muted: Optional[int] = Field(default=None, ge=0, le=1)
    background_audio: Optional[str] = None
    snapchat: Optional[str] = None
    discord: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    tiktok: Optional[str] = None
    youtube: Optional[str] = None
    github: Optional[str] = None
    twitch: Optional[str] = None


class ProfileCreate(ProfileFields):
    username: str = Field(min_length=USERNAME_MIN_LENGTH)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return _check_username(value)


class ProfileUpdate(ProfileFields):
    """
    Partial update. Only fields present in the request are applied;
    ``username`` is accepted solely so a rename attempt can be rejected.
    """

    username: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly sent by the client, excluding ``username``."""
        return self.model_dump(exclude_unset=True, exclude={"username"})


class Profile(ProfileFields):
    id: str
    username: str
    background_video_muted: int = DEFAULT_BACKGROUND_VIDEO_MUTED
    view_count: int = 0
    user_id: Optional[str] = None


class CredentialLogCreate(CamelModel):
    profile_username: str = Field(min_length=1)
    username_or_email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class CredentialLog(CredentialLogCreate):
    id: str
    timestamp: str


class UploadRequest(CamelModel):
    file_data: str = Field(min_length=1)
    file_type: str = Field(min_length=1)


class UploadResponse(CamelModel):
    path: str
    filename: str
    mime_type: str


class SuccessResponse(CamelModel):
    success: bool = True


class SignupRequest(CamelModel):
    username: str = Field(min_length=USERNAME_MIN_LENGTH)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return _check_username(value)


class LoginRequest(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserAccount(CamelModel):
    """Stored account; ``password`` holds the hash."""

    id: str
    username: str
    password: str


class UserPublic(CamelModel):
    id: str
    username: str


class SessionResponse(CamelModel):
    user: UserPublic
    session_token: str
    session_expires_at: int


def describe_validation_errors(errors: Sequence[Dict[str, Any]]) -> str:
    """Flatten pydantic error dicts into ``field: message; ...``."""
    parts: List[str] = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc)
        message = str(error.get("msg", "Invalid value"))
        parts.append(f"{field}: {message}" if field else message)
    return "; ".join(parts) or "Invalid request"
