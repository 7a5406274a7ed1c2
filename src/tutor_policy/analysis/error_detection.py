"""Two-pass, fail-open error detection for user utterances."""

import asyncio
import string
from typing import TypeVar

import structlog

from tutor_policy.analysis.classifier import ClassificationRequest, Classifier, StageConfig
from tutor_policy.analysis.prompts import (
    BASIC_ERRORS_SYSTEM_PROMPT,
    CONSTRUCTIONS_SYSTEM_PROMPT,
    build_basic_errors_prompt,
    build_constructions_prompt,
)
from tutor_policy.models.analysis import (
    BasicErrorJudgment,
    ConstructionJudgment,
    ErrorFinding,
    UtteranceAnalysis,
)
from tutor_policy.models.language import Language

logger = structlog.get_logger()

JudgmentT = TypeVar("JudgmentT", BasicErrorJudgment, ConstructionJudgment)

# Greetings and acknowledgements across the supported languages that are
# never worth correcting on their own.
COMMON_PHRASES = frozenset({
    "hi", "hello", "hey", "good", "morning", "afternoon", "evening", "night",
    "hola", "buenos", "buenas", "dias", "tardes", "noches",
    "bonjour", "bonsoir", "salut", "ciao", "buongiorno", "buonasera",
    "hallo", "guten", "tag", "abend", "ola", "bom", "dia", "tarde", "noite",
    "yes", "no", "si", "oui", "non", "ja", "nein", "sim", "nao", "não",
    "thanks", "thank", "you", "gracias", "merci", "grazie", "danke", "obrigado",
    "fine", "bien", "bene", "gut", "okay", "ok",
})

MAX_SHORT_PHRASE_WORDS = 3

_PUNCTUATION = string.punctuation + "¡¿«»…"


def is_common_short_phrase(text: str) -> bool:
    """True for inputs of at most three words containing a common phrase."""
    words = [word.strip(_PUNCTUATION) for word in text.strip().lower().split()]
    if not words or len(words) > MAX_SHORT_PHRASE_WORDS:
        return False
    return any(word in COMMON_PHRASES for word in words)


def _describe_language(language: Language | str) -> str:
    parsed = Language.parse(str(language))
    if parsed is None:
        return str(language)
    return f"{parsed.display_name} ({parsed.value})"


class ErrorDetectionPipeline:
    """Runs the basic-error and artificial-construction passes.

    Neither pass ever raises to the caller: a failed, malformed or timed out
    model call yields no findings.

    Args:
        classifier: Language-model classification backend.
        basic_config: Tuning for the basic-error pass.
        construction_config: Tuning for the naturalness pass.
        timeout_seconds: Upper bound for each pass.
    """

    def __init__(
        self,
        classifier: Classifier,
        basic_config: StageConfig | None = None,
        construction_config: StageConfig | None = None,
        timeout_seconds: float = 10.0,
    ):
        self.classifier = classifier
        self.basic_config = basic_config or StageConfig(temperature=0.1, max_tokens=500)
        self.construction_config = construction_config or StageConfig(temperature=0.3)
        self.timeout_seconds = timeout_seconds

    async def detect_basic_errors(
        self, text: str, language: Language | str
    ) -> list[ErrorFinding]:
        """Spelling, capitalization, grammar and syntax errors."""
        judgment = await self._basic_judgment(text, language)
        return judgment.errors if judgment.has_errors else []

    async def detect_artificial_constructions(
        self, text: str, language: Language | str
    ) -> list[ErrorFinding]:
        """Unnatural or overly literal phrasing."""
        request = ClassificationRequest(
            system_prompt=CONSTRUCTIONS_SYSTEM_PROMPT,
            prompt=build_constructions_prompt(text, _describe_language(language)),
            config=self.construction_config,
        )
        judgment = await self._run_stage("artificial_constructions", request, ConstructionJudgment)
        return judgment.errors if judgment.has_errors else []

    async def analyze(self, text: str, language: Language | str) -> UtteranceAnalysis:
        """Run both passes concurrently and combine their findings."""
        basic, constructions = await asyncio.gather(
            self._basic_judgment(text, language),
            self.detect_artificial_constructions(text, language),
        )
        analysis = UtteranceAnalysis(
            basic_errors=basic.errors if basic.has_errors else [],
            artificial_constructions=constructions,
            corrected_sentence=basic.corrected_sentence if basic.has_errors else None,
        )
        logger.info(
            "utterance_analyzed",
            language=str(language),
            basic_errors=len(analysis.basic_errors),
            artificial_constructions=len(analysis.artificial_constructions),
        )
        return analysis

    async def _basic_judgment(self, text: str, language: Language | str) -> BasicErrorJudgment:
        if not text.strip() or is_common_short_phrase(text):
            logger.debug("basic_error_detection_skipped", text=text)
            return BasicErrorJudgment()

        request = ClassificationRequest(
            system_prompt=BASIC_ERRORS_SYSTEM_PROMPT,
            prompt=build_basic_errors_prompt(text, _describe_language(language)),
            config=self.basic_config,
        )
        return await self._run_stage("basic_errors", request, BasicErrorJudgment)

    async def _run_stage(
        self,
        stage: str,
        request: ClassificationRequest,
        judgment_cls: type[JudgmentT],
    ) -> JudgmentT:
        try:
            result = await asyncio.wait_for(
                self.classifier.classify(request), timeout=self.timeout_seconds
            )
            judgment = judgment_cls.model_validate(result)
        except Exception as e:
            logger.warning(
                "analysis_degraded",
                stage=stage,
                error_type=type(e).__name__,
                error=str(e),
            )
            return judgment_cls()

        if judgment.has_errors:
            logger.info("analysis_findings", stage=stage, count=len(judgment.errors))
        return judgment
