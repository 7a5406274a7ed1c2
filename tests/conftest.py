"""Shared fixtures: in-memory profiles and a scripted classifier."""

import pytest

from tutor_policy.analysis.classifier import ClassificationRequest
from tutor_policy.analysis.error_detection import ErrorDetectionPipeline
from tutor_policy.analysis.prompts import BASIC_ERRORS_SYSTEM_PROMPT
from tutor_policy.conversation.coordinator import ConversationPolicyCoordinator
from tutor_policy.conversation.enforcer import LanguageEnforcer
from tutor_policy.models.language import Language
from tutor_policy.policy.access import AccessPolicyEngine
from tutor_policy.storage.repository import InMemoryProfileRepository


class ScriptedClassifier:
    """Answers each detection pass with a fixed payload or exception."""

    def __init__(self, basic=None, constructions=None):
        self.basic = basic if basic is not None else {"hasErrors": False, "errors": []}
        self.constructions = (
            constructions if constructions is not None else {"hasErrors": False, "errors": []}
        )
        self.requests: list[ClassificationRequest] = []

    def stages(self) -> list[str]:
        return [
            "basic_errors" if r.system_prompt == BASIC_ERRORS_SYSTEM_PROMPT
            else "artificial_constructions"
            for r in self.requests
        ]

    async def classify(self, request: ClassificationRequest) -> dict:
        self.requests.append(request)
        answer = self.basic if request.system_prompt == BASIC_ERRORS_SYSTEM_PROMPT else self.constructions
        if isinstance(answer, BaseException):
            raise answer
        return answer


@pytest.fixture
def repository():
    return InMemoryProfileRepository()


@pytest.fixture
def policy(repository):
    return AccessPolicyEngine(repository=repository, default_language=Language.ES)


@pytest.fixture
def classifier():
    return ScriptedClassifier()


@pytest.fixture
def pipeline(classifier):
    return ErrorDetectionPipeline(classifier=classifier, timeout_seconds=1.0)


@pytest.fixture
def coordinator(policy, pipeline):
    return ConversationPolicyCoordinator(
        policy=policy, pipeline=pipeline, enforcer=LanguageEnforcer(policy)
    )
