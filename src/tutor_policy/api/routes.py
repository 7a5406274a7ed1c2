"""REST API routes for subscriptions, language switching and turn preparation."""

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from tutor_policy.api.dependencies import get_coordinator, get_policy
from tutor_policy.conversation.coordinator import ConversationPolicyCoordinator
from tutor_policy.models.language import SUPPORTED_LANGUAGES, Language
from tutor_policy.models.profile import UserProfile
from tutor_policy.policy.access import AccessPolicyEngine

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class SwitchLanguageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")
    language: str | None = None


class TurnRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")
    text: str | None = None
    detected_languages: list[str] = Field(default_factory=list, alias="detectedLanguages")


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse({"error": error}, status_code=400)


def _internal_error(error: str, exc: Exception) -> JSONResponse:
    logger.error("request_failed", error=error, details=str(exc), exc_info=exc)
    return JSONResponse({"error": error, "details": str(exc)}, status_code=500)


def _profile_payload(profile: UserProfile) -> dict:
    return {
        "subscriptionType": profile.subscription_type.value,
        "availableLanguages": [lang.value for lang in profile.available_languages],
        "activeLanguage": profile.active_language.value,
    }


@router.get("/subscription/status/{session_id}")
async def get_subscription_status(
    session_id: str, policy: AccessPolicyEngine = Depends(get_policy)
):
    """Subscription tier and language access for a session."""
    try:
        status = await policy.get_status(session_id)
    except Exception as e:
        return _internal_error("Failed to get subscription status", e)
    return {"success": True, "data": status.to_response()}


@router.post("/subscription/switch-language")
async def switch_language(
    body: SwitchLanguageRequest,
    coordinator: ConversationPolicyCoordinator = Depends(get_coordinator),
):
    """Change the active language; refused switches answer 403."""
    if not body.session_id or not body.language:
        return _bad_request("Session ID and language are required")
    language = Language.parse(body.language)
    if language is None:
        supported = ", ".join(lang.value for lang in SUPPORTED_LANGUAGES)
        return _bad_request(f"Unsupported language '{body.language}'. Use one of: {supported}")

    try:
        response = await coordinator.request_language_switch(body.session_id, language.value)
    except Exception as e:
        return _internal_error("Failed to switch language", e)

    result = response.result
    if result.success:
        return {
            "success": True,
            "message": result.message,
            "claraResponse": response.message,
            "newActiveLanguage": result.active_language.value,
        }
    return JSONResponse(
        {
            "success": False,
            "error": result.message,
            "claraResponse": response.message,
            "requiresUpgrade": result.requires_upgrade,
        },
        status_code=403,
    )


@router.post("/subscription/upgrade/{session_id}")
async def upgrade_subscription(session_id: str, policy: AccessPolicyEngine = Depends(get_policy)):
    try:
        profile = await policy.upgrade(session_id)
    except Exception as e:
        return _internal_error("Failed to upgrade subscription", e)
    return {
        "success": True,
        "message": "Successfully upgraded to premium",
        "profile": _profile_payload(profile),
    }


@router.post("/subscription/downgrade/{session_id}")
async def downgrade_subscription(
    session_id: str, policy: AccessPolicyEngine = Depends(get_policy)
):
    try:
        profile = await policy.downgrade(session_id)
    except Exception as e:
        return _internal_error("Failed to downgrade subscription", e)
    return {
        "success": True,
        "message": "Successfully downgraded to freemium",
        "profile": _profile_payload(profile),
    }


@router.post("/conversation/turn")
async def prepare_turn(
    body: TurnRequest,
    coordinator: ConversationPolicyCoordinator = Depends(get_coordinator),
):
    """Resolve the reply language and corrections for one user utterance."""
    if not body.session_id or body.text is None:
        return _bad_request("Session ID and text are required")

    try:
        turn = await coordinator.prepare_turn(
            body.session_id, body.text, set(body.detected_languages)
        )
        status = await coordinator.policy.get_status(body.session_id)
    except Exception as e:
        return _internal_error("Failed to prepare turn", e)

    analysis = turn.analysis
    return {
        "success": True,
        "activeLanguage": turn.language.value,
        "data": {
            "errors": [f.model_dump() for f in analysis.basic_errors],
            "artificialConstructions": [f.model_dump() for f in analysis.artificial_constructions],
            "correctedSentence": analysis.corrected_sentence,
            "notice": turn.notice,
            "systemPrompt": turn.system_prompt,
        },
        "subscriptionInfo": status.to_response(),
    }


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        {"error": "Invalid request", "details": str(exc.errors())}, status_code=400
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error", "details": str(exc)}, status_code=500)


def install_error_handlers(app: FastAPI) -> None:
    """Validation failures answer 400, anything unexpected 500."""
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
