"""Smoke tests for profile repositories."""

import json

import pytest
from pydantic import ValidationError

from tutor_policy.models.language import SUPPORTED_LANGUAGES, Language
from tutor_policy.models.profile import SubscriptionType, UserProfile
from tutor_policy.storage.json_profiles import JsonProfileRepository
from tutor_policy.storage.repository import InMemoryProfileRepository, apply_changes


@pytest.fixture(params=["memory", "json"])
def repo(request, tmp_path):
    if request.param == "memory":
        return InMemoryProfileRepository()
    return JsonProfileRepository(tmp_path / "profiles")


class TestRepositoryContract:
    async def test_missing_profile(self, repo):
        assert await repo.get_profile("nobody") is None

    async def test_save_then_get(self, repo):
        await repo.save_profile(UserProfile.create("s1", Language.FR))
        loaded = await repo.get_profile("s1")
        assert loaded.session_id == "s1"
        assert loaded.active_language == Language.FR
        assert loaded.available_languages == [Language.FR]

    async def test_save_never_overwrites(self, repo):
        await repo.save_profile(UserProfile.create("s1", Language.FR))
        stored = await repo.save_profile(UserProfile.create("s1", Language.DE))
        assert stored.active_language == Language.FR
        assert (await repo.get_profile("s1")).preferred_language == Language.FR

    async def test_updates_apply(self, repo):
        await repo.save_profile(UserProfile.create("s1", Language.ES))
        await repo.update_subscription_type("s1", SubscriptionType.PREMIUM)
        await repo.update_available_languages("s1", list(SUPPORTED_LANGUAGES))
        await repo.update_active_language("s1", Language.PT)

        profile = await repo.get_profile("s1")
        assert profile.subscription_type == SubscriptionType.PREMIUM
        assert set(profile.available_languages) == set(SUPPORTED_LANGUAGES)
        assert profile.active_language == Language.PT

    async def test_update_missing_is_noop(self, repo):
        await repo.update_active_language("ghost", Language.EN)
        assert await repo.get_profile("ghost") is None

    async def test_update_profile_returns_stored_profile(self, repo):
        await repo.save_profile(UserProfile.create("s1", Language.ES))
        updated = await repo.update_profile(
            "s1",
            lambda p: apply_changes(
                p,
                subscription_type=SubscriptionType.PREMIUM,
                available_languages=list(SUPPORTED_LANGUAGES),
            ),
        )
        assert updated.subscription_type == SubscriptionType.PREMIUM
        assert await repo.get_profile("s1") == updated

    async def test_update_profile_without_change(self, repo):
        await repo.save_profile(UserProfile.create("s1", Language.ES))
        before = await repo.get_profile("s1")
        assert await repo.update_profile("s1", lambda p: None) == before
        assert await repo.get_profile("s1") == before

    async def test_update_profile_missing(self, repo):
        calls = []
        assert await repo.update_profile("ghost", calls.append) is None
        assert calls == []

    async def test_update_breaking_invariant_rejected(self, repo):
        await repo.save_profile(UserProfile.create("s1", Language.ES))
        with pytest.raises(ValidationError):
            await repo.update_active_language("s1", Language.FR)
        assert (await repo.get_profile("s1")).active_language == Language.ES


class TestInMemoryRepository:
    async def test_returned_profiles_are_copies(self):
        repo = InMemoryProfileRepository()
        await repo.save_profile(UserProfile.create("s1", Language.ES))
        profile = await repo.get_profile("s1")
        profile.available_languages.append(Language.FR)
        assert (await repo.get_profile("s1")).available_languages == [Language.ES]


class TestJsonRepository:
    async def test_file_written_as_json(self, tmp_path):
        repo = JsonProfileRepository(tmp_path)
        await repo.save_profile(UserProfile.create("s1", Language.IT))
        data = json.loads((tmp_path / "s1.json").read_text())
        assert data["active_language"] == "it"
        assert data["subscription_type"] == "freemium"

    def test_session_id_cannot_escape_directory(self, tmp_path):
        repo = JsonProfileRepository(tmp_path)
        path = repo.get_profile_path("../../etc/passwd")
        assert path.parent == tmp_path
