"""Profile repository contract and in-memory implementation."""

import asyncio
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from tutor_policy.models.language import Language
from tutor_policy.models.profile import SubscriptionType, UserProfile

# Receives the stored profile, returns the replacement or None to leave it as is.
ProfileMutation = Callable[[UserProfile], UserProfile | None]


class ProfileRepository(Protocol):
    """Durable store of per-session profiles.

    Every call is atomic for its session. Update calls on a session with
    no profile are no-ops, callers re-read to find out.
    """

    async def get_profile(self, session_id: str) -> UserProfile | None: ...

    async def save_profile(self, profile: UserProfile) -> UserProfile:
        """Insert the profile unless one exists; return the stored profile."""
        ...

    async def update_profile(
        self, session_id: str, mutate: ProfileMutation
    ) -> UserProfile | None:
        """Read, mutate and write the profile as one step.

        Returns the profile as stored afterwards, or None if there is none.
        """
        ...

    async def update_subscription_type(
        self, session_id: str, subscription_type: SubscriptionType
    ) -> None: ...

    async def update_available_languages(
        self, session_id: str, languages: list[Language]
    ) -> None: ...

    async def update_active_language(self, session_id: str, language: Language) -> None: ...


def apply_changes(profile: UserProfile, **changes: Any) -> UserProfile:
    """Return a re-validated copy of the profile with the changes applied."""
    data = profile.model_dump()
    data.update(changes)
    data["updated_at"] = datetime.now()
    return UserProfile.model_validate(data)


def set_fields(**changes: Any) -> ProfileMutation:
    return lambda profile: apply_changes(profile, **changes)


class InMemoryProfileRepository:
    """Process-local repository, one lock per session."""

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get_profile(self, session_id: str) -> UserProfile | None:
        profile = self._profiles.get(session_id)
        return profile.model_copy(deep=True) if profile else None

    async def save_profile(self, profile: UserProfile) -> UserProfile:
        async with self._locks[profile.session_id]:
            stored = self._profiles.setdefault(profile.session_id, profile.model_copy(deep=True))
            return stored.model_copy(deep=True)

    async def update_profile(
        self, session_id: str, mutate: ProfileMutation
    ) -> UserProfile | None:
        async with self._locks[session_id]:
            profile = self._profiles.get(session_id)
            if profile is None:
                return None
            updated = mutate(profile.model_copy(deep=True))
            if updated is not None:
                self._profiles[session_id] = profile = updated
            return profile.model_copy(deep=True)

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
