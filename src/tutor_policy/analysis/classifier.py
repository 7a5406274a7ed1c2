"""Language-model classification capability used by error detection."""

import json
from typing import Any, Protocol

import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel

from tutor_policy.config import Settings
from tutor_policy.errors import AnalysisDegraded

logger = structlog.get_logger()


class StageConfig(BaseModel):
    """Model tuning for one detection pass."""

    model: str = "gpt-4o"
    temperature: float = 0.1
    max_tokens: int | None = None

    @classmethod
    def basic_errors(cls, settings: Settings) -> "StageConfig":
        return cls(
            model=settings.basic_error_model,
            temperature=settings.basic_error_temperature,
            max_tokens=settings.basic_error_max_tokens,
        )

    @classmethod
    def constructions(cls, settings: Settings) -> "StageConfig":
        return cls(
            model=settings.construction_model,
            temperature=settings.construction_temperature,
            max_tokens=settings.construction_max_tokens,
        )


class ClassificationRequest(BaseModel):
    system_prompt: str
    prompt: str
    config: StageConfig


class Classifier(Protocol):
    """Turns a prompt into a structured (JSON object) judgment."""

    async def classify(self, request: ClassificationRequest) -> dict[str, Any]: ...


class OpenAIClassifier:
    """Chat-completions classifier in JSON mode.

    Makes a single attempt per call; retries are disabled on the client.

    Args:
        api_key: OpenAI API key.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, api_key: str, timeout: float | None = None):
        self.client = AsyncOpenAI(api_key=api_key, max_retries=0, timeout=timeout)

    async def classify(self, request: ClassificationRequest) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if request.config.max_tokens is not None:
            options["max_tokens"] = request.config.max_tokens

        response = await self.client.chat.completions.create(
            model=request.config.model,
            messages=[
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.prompt},
            ],
            temperature=request.config.temperature,
            response_format={"type": "json_object"},
            **options,
        )

        content = response.choices[0].message.content
        if not content:
            raise AnalysisDegraded("empty classification response")
        try:
            result = json.loads(content)
        except json.JSONDecodeError as e:
            raise AnalysisDegraded(f"non-JSON classification response: {e}") from e
        if not isinstance(result, dict):
            raise AnalysisDegraded("classification response is not a JSON object")
        return result


class UnavailableClassifier:
    """Stand-in when no inference backend is configured; every call degrades."""

    async def classify(self, request: ClassificationRequest) -> dict[str, Any]:
        raise AnalysisDegraded("no language model configured")


def build_classifier(settings: Settings) -> Classifier:
    if not settings.openai_api_key:
        logger.warning("classifier_unavailable", reason="openai_api_key not set")
        return UnavailableClassifier()
    return OpenAIClassifier(
        api_key=settings.openai_api_key,
        timeout=settings.analysis_timeout_seconds,
    )
