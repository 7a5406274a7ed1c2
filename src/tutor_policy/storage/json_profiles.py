"""Profile persistence (JSON + fcntl.flock + atomic write)."""

import asyncio
import fcntl
import json
import os
import tempfile
from pathlib import Path
from urllib.parse import quote

from tutor_policy.models.language import Language
from tutor_policy.models.profile import SubscriptionType, UserProfile
from tutor_policy.storage.repository import ProfileMutation, set_fields


class JsonProfileRepository:
    """One JSON file per session under ``profiles_dir``.

    Blocking file I/O runs in a worker thread so other sessions keep going.
    Writers hold an exclusive lock on a sidecar ``.lock`` file for the whole
    read-modify-write.
    """

    def __init__(self, profiles_dir: Path):
        self.profiles_dir = profiles_dir
        self.profiles_dir.mkdir(parents=True, exist_ok=True)

    def get_profile_path(self, session_id: str) -> Path:
        return self.profiles_dir / f"{quote(session_id, safe='')}.json"

    async def get_profile(self, session_id: str) -> UserProfile | None:
        return await asyncio.to_thread(self._load, session_id)

    async def save_profile(self, profile: UserProfile) -> UserProfile:
        return await asyncio.to_thread(self._insert, profile)

    async def update_profile(
        self, session_id: str, mutate: ProfileMutation
    ) -> UserProfile | None:
        return await asyncio.to_thread(self._update, session_id, mutate)

    async def update_subscription_type(
        self, session_id: str, subscription_type: SubscriptionType
    ) -> None:
        await self.update_profile(session_id, set_fields(subscription_type=subscription_type))

    async def update_available_languages(
        self, session_id: str, languages: list[Language]
    ) -> None:
        await self.update_profile(session_id, set_fields(available_languages=list(languages)))

    async def update_active_language(self, session_id: str, language: Language) -> None:
        await self.update_profile(session_id, set_fields(active_language=language))

    def _load(self, session_id: str) -> UserProfile | None:
        path = self.get_profile_path(session_id)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            data = json.load(f)
            fcntl.flock(f, fcntl.LOCK_UN)
        return UserProfile(**data)

    def _write(self, profile: UserProfile) -> None:
        path = self.get_profile_path(profile.session_id)
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(profile.model_dump(mode="json"), tmp)
        os.replace(tmp.name, path)

    def _insert(self, profile: UserProfile) -> UserProfile:
        lock_path = self.get_profile_path(profile.session_id).with_suffix(".lock")
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            existing = self._load(profile.session_id)
            if existing is not None:
                return existing
            self._write(profile)
            return profile

    def _update(self, session_id: str, mutate: ProfileMutation) -> UserProfile | None:
        lock_path = self.get_profile_path(session_id).with_suffix(".lock")
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            profile = self._load(session_id)
            if profile is None:
                return None
            updated = mutate(profile)
            if updated is None:
                return profile
            self._write(updated)
            return updated
