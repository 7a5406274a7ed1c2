"""Per-turn composition of language policy and error detection."""

from typing import Protocol

import structlog
from pydantic import BaseModel

from tutor_policy.analysis.error_detection import ErrorDetectionPipeline
from tutor_policy.conversation.prompts import build_system_prompt
from tutor_policy.models.analysis import ErrorFinding, UtteranceAnalysis
from tutor_policy.models.language import Language
from tutor_policy.models.policy import SwitchResult
from tutor_policy.policy.access import AccessPolicyEngine, classify_mixed_language

logger = structlog.get_logger()


class SwitchMessenger(Protocol):
    async def handle_language_switch_request(
        self, session_id: str, language: str, result: SwitchResult | None = None
    ) -> str: ...


class LanguageSwitchResponse(BaseModel):
    result: SwitchResult
    message: str


class TurnContext(BaseModel):
    """Everything the reply stage needs for one user utterance."""

    session_id: str
    utterance: str
    language: Language
    analysis: UtteranceAnalysis
    notice: str | None = None
    system_prompt: str

    @property
    def findings(self) -> list[ErrorFinding]:
        return self.analysis.findings


class ConversationPolicyCoordinator:
    """Resolves the active language, then runs error detection against it.

    Args:
        policy: Access policy engine.
        pipeline: Error detection pipeline.
        enforcer: Produces the user-facing message after a switch attempt.
    """

    def __init__(
        self,
        policy: AccessPolicyEngine,
        pipeline: ErrorDetectionPipeline,
        enforcer: SwitchMessenger,
    ):
        self.policy = policy
        self.pipeline = pipeline
        self.enforcer = enforcer

    async def request_language_switch(
        self, session_id: str, language: str
    ) -> LanguageSwitchResponse:
        result = await self.policy.switch_active_language(session_id, language)
        # Failures get a localized message too, worded from this result.
        message = await self.enforcer.handle_language_switch_request(
            session_id, language, result=result
        )
        return LanguageSwitchResponse(result=result, message=message)

    async def prepare_turn(
        self,
        session_id: str,
        utterance: str,
        detected_languages: set[str] | None = None,
    ) -> TurnContext:
        language = await self.policy.resolve_response_language(session_id)

        notice = None
        if detected_languages:
            notice = classify_mixed_language(language, detected_languages).message

        analysis = await self.pipeline.analyze(utterance, language)
        logger.info(
            "turn_prepared",
            session_id=session_id,
            language=language.value,
            findings=len(analysis.findings),
            mixed_language=notice is not None,
        )
        return TurnContext(
            session_id=session_id,
            utterance=utterance,
            language=language,
            analysis=analysis,
            notice=notice,
            system_prompt=build_system_prompt(language, analysis),
        )
