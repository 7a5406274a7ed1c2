"""Tests for localized language switch responses."""

import pytest

from tutor_policy.conversation.enforcer import (
    PROFILE_NOT_FOUND_MESSAGES,
    SWITCH_CONFIRMATIONS,
    UPGRADE_REQUIRED_MESSAGES,
    LanguageEnforcer,
)
from tutor_policy.conversation.prompts import build_system_prompt
from tutor_policy.models.analysis import ErrorFinding, UtteranceAnalysis
from tutor_policy.models.language import Language
from tutor_policy.models.policy import SwitchOutcome, SwitchResult


@pytest.fixture
def enforcer(policy):
    return LanguageEnforcer(policy)


class TestSwitchMessages:
    async def test_confirmation_in_new_language(self, policy, enforcer):
        await policy.ensure_profile("s1", Language.ES)
        await policy.upgrade("s1")
        await policy.switch_active_language("s1", "fr")

        message = await enforcer.handle_language_switch_request("s1", "fr")
        assert message == SWITCH_CONFIRMATIONS[Language.FR]

    async def test_freemium_refusal_in_active_language(self, policy, enforcer):
        await policy.ensure_profile("s1", Language.ES)
        message = await enforcer.handle_language_switch_request("s1", "de")
        assert "premium" in message
        assert "Deutsch" in message
        assert "español" in message

    async def test_unsupported_code_refusal(self, policy, enforcer):
        await policy.ensure_profile("s1", Language.EN)
        await policy.upgrade("s1")
        message = await enforcer.handle_language_switch_request("s1", "ja")
        assert "ja" in message
        assert "not available" in message

    async def test_unknown_session_reads_without_creating(self, policy, enforcer):
        message = await enforcer.handle_language_switch_request("ghost", "fr")
        assert message == PROFILE_NOT_FOUND_MESSAGES[Language.ES]
        assert await policy.repository.get_profile("ghost") is None

    async def test_result_outcome_wins_over_stored_profile(self, policy, enforcer):
        await policy.ensure_profile("s1", Language.ES)
        result = SwitchResult(
            success=False,
            outcome=SwitchOutcome.UPGRADE_REQUIRED,
            message="Language fr requires premium subscription.",
            active_language=Language.IT,
        )
        message = await enforcer.handle_language_switch_request("s1", "fr", result=result)
        assert message == UPGRADE_REQUIRED_MESSAGES[Language.IT].format(requested="français")

    async def test_not_found_result(self, enforcer):
        result = SwitchResult(
            success=False, outcome=SwitchOutcome.PROFILE_NOT_FOUND, message="Profile not found"
        )
        message = await enforcer.handle_language_switch_request("ghost", "fr", result=result)
        assert message == PROFILE_NOT_FOUND_MESSAGES[Language.ES]

    async def test_every_language_has_messages(self):
        assert set(SWITCH_CONFIRMATIONS) == set(Language)
        assert set(PROFILE_NOT_FOUND_MESSAGES) == set(Language)


class TestSystemPrompt:
    async def test_pinned_to_active_language(self, policy, enforcer):
        await policy.ensure_profile("s1", Language.IT)
        prompt = await enforcer.get_system_prompt("s1")
        assert "exclusively in italiano" in prompt

    def test_unknown_language_falls_back_to_english(self, enforcer):
        assert enforcer.system_prompt_for_language("xx") == build_system_prompt(Language.EN)

    def test_findings_are_listed(self):
        analysis = UtteranceAnalysis(
            basic_errors=[ErrorFinding(wrong="has", correct="have")],
            corrected_sentence="I have an apple",
        )
        prompt = build_system_prompt(Language.EN, analysis)
        assert '"has" -> "have"' in prompt
        assert "I have an apple" in prompt

    def test_no_findings_section_when_clean(self):
        prompt = build_system_prompt(Language.EN, UtteranceAnalysis())
        assert "Corrections detected" not in prompt


class TestLanguageCompliance:
    def test_matching_language(self, enforcer):
        assert enforcer.validate_language_compliance("Where is the station?", "en")
        assert enforcer.validate_language_compliance("Ich habe das Buch", "de")

    def test_wrong_language(self, enforcer):
        assert not enforcer.validate_language_compliance("Ich habe Hunger", "en")

    def test_unknown_language_passes(self, enforcer):
        assert enforcer.validate_language_compliance("anything", "xx")
