"""Service construction and FastAPI dependency getters."""

from fastapi import FastAPI, Request

from tutor_policy.analysis.classifier import Classifier, StageConfig, build_classifier
from tutor_policy.analysis.error_detection import ErrorDetectionPipeline
from tutor_policy.config import Settings
from tutor_policy.conversation.coordinator import ConversationPolicyCoordinator
from tutor_policy.conversation.enforcer import LanguageEnforcer
from tutor_policy.models.language import Language
from tutor_policy.policy.access import AccessPolicyEngine
from tutor_policy.storage.json_profiles import JsonProfileRepository
from tutor_policy.storage.repository import InMemoryProfileRepository, ProfileRepository


def build_repository(settings: Settings) -> ProfileRepository:
    if settings.profile_backend == "memory":
        return InMemoryProfileRepository()
    return JsonProfileRepository(settings.profiles_dir)


def build_coordinator(
    settings: Settings,
    repository: ProfileRepository | None = None,
    classifier: Classifier | None = None,
) -> ConversationPolicyCoordinator:
    policy = AccessPolicyEngine(
        repository=repository or build_repository(settings),
        default_language=Language.parse(settings.default_language) or Language.ES,
    )
    pipeline = ErrorDetectionPipeline(
        classifier=classifier or build_classifier(settings),
        basic_config=StageConfig.basic_errors(settings),
        construction_config=StageConfig.constructions(settings),
        timeout_seconds=settings.analysis_timeout_seconds,
    )
    return ConversationPolicyCoordinator(
        policy=policy,
        pipeline=pipeline,
        enforcer=LanguageEnforcer(policy),
    )


def install_services(app: FastAPI, coordinator: ConversationPolicyCoordinator) -> None:
    app.state.coordinator = coordinator


def get_coordinator(request: Request) -> ConversationPolicyCoordinator:
    return request.app.state.coordinator


def get_policy(request: Request) -> AccessPolicyEngine:
    return request.app.state.coordinator.policy
