"""Tests for the OpenAI-backed classifier adapter."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tutor_policy.analysis.classifier import (
    ClassificationRequest,
    OpenAIClassifier,
    StageConfig,
    UnavailableClassifier,
    build_classifier,
)
from tutor_policy.config import Settings
from tutor_policy.errors import AnalysisDegraded


def _response(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def request_():
    return ClassificationRequest(
        system_prompt="system",
        prompt="user prompt",
        config=StageConfig(model="gpt-4o", temperature=0.1, max_tokens=500),
    )


@pytest.fixture
def classifier():
    clf = OpenAIClassifier(api_key="test-key", timeout=5.0)
    clf.client = MagicMock()
    clf.client.chat.completions.create = AsyncMock()
    return clf


class TestOpenAIClassifier:
    async def test_parses_json_object(self, classifier, request_):
        classifier.client.chat.completions.create.return_value = _response(
            '{"hasErrors": false, "errors": []}'
        )
        assert await classifier.classify(request_) == {"hasErrors": False, "errors": []}

    async def test_sends_stage_config(self, classifier, request_):
        classifier.client.chat.completions.create.return_value = _response("{}")
        await classifier.classify(request_)

        kwargs = classifier.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 500
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}
        assert kwargs["messages"][1] == {"role": "user", "content": "user prompt"}

    async def test_omits_max_tokens_when_unset(self, classifier):
        classifier.client.chat.completions.create.return_value = _response("{}")
        request = ClassificationRequest(
            system_prompt="s", prompt="p", config=StageConfig(temperature=0.3)
        )
        await classifier.classify(request)
        assert "max_tokens" not in classifier.client.chat.completions.create.call_args.kwargs

    @pytest.mark.parametrize("content", [None, "", "not json", "[1, 2]"])
    async def test_unusable_content_raises(self, classifier, request_, content):
        classifier.client.chat.completions.create.return_value = _response(content)
        with pytest.raises(AnalysisDegraded):
            await classifier.classify(request_)

    def test_client_does_not_retry(self):
        clf = OpenAIClassifier(api_key="test-key")
        assert clf.client.max_retries == 0


class TestBuildClassifier:
    def test_without_api_key(self):
        assert isinstance(build_classifier(Settings(openai_api_key=None)), UnavailableClassifier)

    def test_with_api_key(self):
        assert isinstance(build_classifier(Settings(openai_api_key="test-key")), OpenAIClassifier)

    async def test_unavailable_always_degrades(self, request_):
        with pytest.raises(AnalysisDegraded):
            await UnavailableClassifier().classify(request_)


class TestStageConfig:
    def test_from_settings(self):
        settings = Settings(
            basic_error_model="gpt-4o-mini",
            basic_error_temperature=0.0,
            basic_error_max_tokens=300,
            construction_temperature=0.5,
        )
        basic = StageConfig.basic_errors(settings)
        constructions = StageConfig.constructions(settings)
        assert basic == StageConfig(model="gpt-4o-mini", temperature=0.0, max_tokens=300)
        assert constructions.temperature == 0.5
        assert constructions.max_tokens is None
