"""
Storage backends for profiles, credential logs and accounts.

``MemoryStorage`` keeps everything in process memory and is lost on
restart; ``DatabaseStorage`` persists through SQLAlchemy. Neither backend
serializes operations per username: concurrent writers are last-write-wins.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select

import models
from config import settings
from database import async_session_maker
from schemas import (
    DEFAULT_BACKGROUND_VIDEO_MUTED,
    CredentialLog,
    CredentialLogCreate,
    Profile,
    ProfileCreate,
    ProfileUpdate,
    UserAccount,
)

logger = logging.getLogger(__name__)


class DuplicateUsernameError(ValueError):
    """Username is already taken."""


class ImmutableFieldError(ValueError):
    """An update tried to change a field that is fixed at creation."""


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _creation_values(data: ProfileCreate) -> Dict[str, Any]:
    values = data.model_dump()
    if values.get("background_video_muted") is None:
        values["background_video_muted"] = DEFAULT_BACKGROUND_VIDEO_MUTED
    return values


def _normalized_changes(updates: ProfileUpdate) -> Dict[str, Any]:
    changes = updates.changes()
    if "background_video_muted" in changes and changes["background_video_muted"] is None:
        changes["background_video_muted"] = DEFAULT_BACKGROUND_VIDEO_MUTED
    return changes


def _reject_username_change(username: str, updates: ProfileUpdate) -> None:
    if updates.username and updates.username != username:
        raise ImmutableFieldError("Cannot change username")


class Storage(Protocol):
    async def get_all_profiles(self) -> List[Profile]: ...

    async def get_profile(self, profile_id: str) -> Optional[Profile]: ...

    async def get_profile_by_username(self, username: str) -> Optional[Profile]: ...

    async def create_profile(self, data: ProfileCreate, user_id: Optional[str] = None) -> Profile: ...

    async def update_profile(self, username: str, updates: ProfileUpdate) -> Optional[Profile]: ...

    async def increment_view_count(self, username: str) -> Optional[Profile]: ...

    async def create_credential_log(self, data: CredentialLogCreate) -> CredentialLog: ...

    async def get_all_credential_logs(self) -> List[CredentialLog]: ...

    async def create_user(self, username: str, password_hash: str) -> UserAccount: ...

    async def get_user(self, user_id: str) -> Optional[UserAccount]: ...

    async def get_user_by_username(self, username: str) -> Optional[UserAccount]: ...


class MemoryStorage:
    """Volatile dict-backed storage. Records handed out are copies."""

    def __init__(self) -> None:
        self._profiles: Dict[str, Profile] = {}
        self._credential_logs: Dict[str, CredentialLog] = {}
        self._users: Dict[str, UserAccount] = {}

    def _find_profile(self, username: str) -> Optional[Profile]:
        for profile in self._profiles.values():
            if profile.username == username:
                return profile
        return None

    async def get_all_profiles(self) -> List[Profile]:
        return [profile.model_copy() for profile in self._profiles.values()]

    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        profile = self._profiles.get(profile_id)
        return profile.model_copy() if profile else None

    async def get_profile_by_username(self, username: str) -> Optional[Profile]:
        profile = self._find_profile(username)
        return profile.model_copy() if profile else None

    async def create_profile(self, data: ProfileCreate, user_id: Optional[str] = None) -> Profile:
        if self._find_profile(data.username) is not None:
            raise DuplicateUsernameError("Username already exists")
        profile = Profile(id=str(uuid.uuid4()), user_id=user_id, view_count=0, **_creation_values(data))
        self._profiles[profile.id] = profile
        return profile.model_copy()

    async def update_profile(self, username: str, updates: ProfileUpdate) -> Optional[Profile]:
        _reject_username_change(username, updates)
        profile = self._find_profile(username)
        if profile is None:
            return None
        updated = profile.model_copy(update=_normalized_changes(updates))
        self._profiles[profile.id] = updated
        return updated.model_copy()

    async def increment_view_count(self, username: str) -> Optional[Profile]:
        # No await between lookup and write, so increments on one loop never interleave.
        profile = self._find_profile(username)
        if profile is None:
            return None
        profile.view_count += 1
        return profile.model_copy()

    async def create_credential_log(self, data: CredentialLogCreate) -> CredentialLog:
        log = CredentialLog(id=str(uuid.uuid4()), timestamp=now_iso(), **data.model_dump())
        self._credential_logs[log.id] = log
        return log.model_copy()

    async def get_all_credential_logs(self) -> List[CredentialLog]:
        return [log.model_copy() for log in self._credential_logs.values()]

    async def create_user(self, username: str, password_hash: str) -> UserAccount:
        if await self.get_user_by_username(username) is not None:
            raise DuplicateUsernameError("Username already exists")
        user = UserAccount(id=str(uuid.uuid4()), username=username, password=password_hash)
        self._users[user.id] = user
        return user.model_copy()

    async def get_user(self, user_id: str) -> Optional[UserAccount]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_user_by_username(self, username: str) -> Optional[UserAccount]:
        for user in self._users.values():
            if user.username == username:
                return user.model_copy()
        return None


def _to_profile(row: models.Profile) -> Profile:
    return Profile(**{name: getattr(row, name) for name in Profile.model_fields})


def _to_credential_log(row: models.CredentialLog) -> CredentialLog:
    return CredentialLog(**{name: getattr(row, name) for name in CredentialLog.model_fields})


def _to_user(row: models.User) -> UserAccount:
    return UserAccount(id=row.id, username=row.username, password=row.password)


class DatabaseStorage:
    """SQLAlchemy-backed storage; each operation runs in its own session."""

    def __init__(self, session_maker: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._session_maker = session_maker or async_session_maker

    @staticmethod
    async def _find_profile(db: AsyncSession, username: str) -> Optional[models.Profile]:
        result = await db.execute(select(models.Profile).where(models.Profile.username == username))
        return result.scalar_one_or_none()

    async def get_all_profiles(self) -> List[Profile]:
        async with self._session_maker() as db:
            result = await db.execute(select(models.Profile))
            return [_to_profile(row) for row in result.scalars().all()]

    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        async with self._session_maker() as db:
            row = await db.get(models.Profile, profile_id)
            return _to_profile(row) if row else None

    async def get_profile_by_username(self, username: str) -> Optional[Profile]:
        async with self._session_maker() as db:
            row = await self._find_profile(db, username)
            return _to_profile(row) if row else None

    async def create_profile(self, data: ProfileCreate, user_id: Optional[str] = None) -> Profile:
        async with self._session_maker() as db:
            if await self._find_profile(db, data.username) is not None:
                raise DuplicateUsernameError("Username already exists")
            row = models.Profile(id=str(uuid.uuid4()), user_id=user_id, view_count=0, **_creation_values(data))
            db.add(row)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise DuplicateUsernameError("Username already exists") from exc
            await db.refresh(row)
            return _to_profile(row)

    async def update_profile(self, username: str, updates: ProfileUpdate) -> Optional[Profile]:
        _reject_username_change(username, updates)
        async with self._session_maker() as db:
            row = await self._find_profile(db, username)
            if row is None:
                return None
            for field, value in _normalized_changes(updates).items():
                setattr(row, field, value)
            await db.commit()
            await db.refresh(row)
            return _to_profile(row)

    async def increment_view_count(self, username: str) -> Optional[Profile]:
        async with self._session_maker() as db:
            result = await db.execute(
                update(models.Profile)
                .where(models.Profile.username == username)
                .values(view_count=models.Profile.view_count + 1)
            )
            await db.commit()
            if not result.rowcount:
                return None
            row = await self._find_profile(db, username)
            return _to_profile(row) if row else None

    async def create_credential_log(self, data: CredentialLogCreate) -> CredentialLog:
        async with self._session_maker() as db:
            row = models.CredentialLog(id=str(uuid.uuid4()), timestamp=now_iso(), **data.model_dump())
            db.add(row)
            await db.commit()
            return _to_credential_log(row)

    async def get_all_credential_logs(self) -> List[CredentialLog]:
        async with self._session_maker() as db:
            result = await db.execute(select(models.CredentialLog))
            return [_to_credential_log(row) for row in result.scalars().all()]

    async def create_user(self, username: str, password_hash: str) -> UserAccount:
        async with self._session_maker() as db:
            existing = await db.execute(select(models.User).where(models.User.username == username))
            if existing.scalar_one_or_none() is not None:
                raise DuplicateUsernameError("Username already exists")
            row = models.User(id=str(uuid.uuid4()), username=username, password=password_hash)
            db.add(row)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise DuplicateUsernameError("Username already exists") from exc
            return _to_user(row)

    async def get_user(self, user_id: str) -> Optional[UserAccount]:
        async with self._session_maker() as db:
            row = await db.get(models.User, user_id)
            return _to_user(row) if row else None

    async def get_user_by_username(self, username: str) -> Optional[UserAccount]:
        async with self._session_maker() as db:
            result = await db.execute(select(models.User).where(models.User.username == username))
            row = result.scalar_one_or_none()
            return _to_user(row) if row else None


_storage: Optional[Storage] = None


def build_storage(backend: str) -> Storage:
    if backend == "database":
        return DatabaseStorage()
    return MemoryStorage()


def get_storage() -> Storage:
    """FastAPI dependency returning the process-wide storage backend."""
    global _storage
    if _storage is None:
        _storage = build_storage(settings.STORAGE_BACKEND)
        logger.info("Using %s storage backend", settings.STORAGE_BACKEND)
    return _storage
