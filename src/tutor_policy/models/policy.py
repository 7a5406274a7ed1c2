"""Outcomes of access-policy decisions."""

from enum import StrEnum

from pydantic import BaseModel

from tutor_policy.models.language import Language


class SwitchOutcome(StrEnum):
    """Why a language switch did or did not happen."""

    SWITCHED = "switched"
    PROFILE_NOT_FOUND = "profile_not_found"
    UPGRADE_REQUIRED = "upgrade_required"
    UNAVAILABLE = "unavailable"


class SwitchResult(BaseModel):
    success: bool
    outcome: SwitchOutcome
    message: str
    active_language: Language | None = None

    @property
    def requires_upgrade(self) -> bool:
        return self.outcome == SwitchOutcome.UPGRADE_REQUIRED


class MixedLanguageResult(BaseModel):
    """Verdict on an utterance whose detected languages may not match."""

    should_process: bool = True
    active_language: Language
    message: str | None = None
