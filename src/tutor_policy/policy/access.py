"""Subscription-gated language access."""

import structlog

from tutor_policy.errors import ProfileInvariantViolation, ProfileNotFound
from tutor_policy.models.language import SUPPORTED_LANGUAGES, Language
from tutor_policy.models.policy import MixedLanguageResult, SwitchOutcome, SwitchResult
from tutor_policy.models.profile import SubscriptionStatus, SubscriptionType, UserProfile
from tutor_policy.storage.repository import ProfileRepository, apply_changes

logger = structlog.get_logger()


def normalize_detected(detected_languages: set[str]) -> set[str]:
    return {code.strip().lower() for code in detected_languages if code}


def classify_mixed_language(
    active_language: Language, detected_languages: set[str]
) -> MixedLanguageResult:
    """Decide how to treat an utterance given the languages detected in it.

    Input is always processed. A notice is attached only when several
    languages were heard and none of them is the active one.
    """
    detected = normalize_detected(detected_languages)
    if active_language.value not in detected and len(detected) > 1:
        return MixedLanguageResult(
            active_language=active_language,
            message=(
                "Input contains mixed languages but system will respond in "
                f"active language: {active_language.value}"
            ),
        )
    return MixedLanguageResult(active_language=active_language)


class AccessPolicyEngine:
    """Owns subscription tiers, language entitlement and the active language.

    Args:
        repository: Profile store; each mutating operation is one atomic
            `update_profile` call on it.
        default_language: Language given to profiles created lazily.
    """

    def __init__(self, repository: ProfileRepository, default_language: Language = Language.ES):
        self.repository = repository
        self.default_language = default_language

    async def ensure_profile(
        self, session_id: str, default_language: Language | None = None
    ) -> UserProfile:
        """Return the session's profile, creating a freemium one if needed."""
        profile = await self.repository.get_profile(session_id)
        if profile is not None:
            return profile

        language = default_language or self.default_language
        profile = await self.repository.save_profile(UserProfile.create(session_id, language))
        logger.info(
            "profile_created",
            session_id=session_id,
            subscription_type=profile.subscription_type.value,
            language=profile.active_language.value,
        )
        return profile

    async def upgrade(self, session_id: str) -> UserProfile:
        """Move to premium and unlock every supported language."""
        profile = await self.repository.update_profile(
            session_id,
            lambda current: apply_changes(
                current,
                subscription_type=SubscriptionType.PREMIUM,
                available_languages=list(SUPPORTED_LANGUAGES),
            ),
        )
        profile = self._check_tier(session_id, profile)
        logger.info("subscription_upgraded", session_id=session_id)
        return profile

    async def downgrade(self, session_id: str) -> UserProfile:
        """Move to freemium, keeping only the language currently in use."""
        profile = await self.repository.update_profile(
            session_id,
            lambda current: apply_changes(
                current,
                subscription_type=SubscriptionType.FREEMIUM,
                available_languages=[current.active_language],
            ),
        )
        profile = self._check_tier(session_id, profile)
        logger.info(
            "subscription_downgraded",
            session_id=session_id,
            locked_to=profile.active_language.value,
        )
        return profile

    async def can_access(self, session_id: str, language: str) -> bool:
        profile = await self.repository.get_profile(session_id)
        if profile is None:
            return False
        return language in profile.available_languages

    async def switch_active_language(self, session_id: str, language: str) -> SwitchResult:
        """Make ``language`` the session's active language if it is entitled.

        This is the only place the active language changes. The entitlement
        check and the write happen under the same repository lock.
        """

        def switch(current: UserProfile) -> UserProfile | None:
            if language not in current.available_languages:
                return None
            return apply_changes(current, active_language=Language(language))

        profile = await self.repository.update_profile(session_id, switch)
        if profile is None:
            return SwitchResult(
                success=False,
                outcome=SwitchOutcome.PROFILE_NOT_FOUND,
                message="Profile not found",
            )

        # A refused switch leaves the profile as it was read under the lock.
        if language not in profile.available_languages:
            logger.info(
                "language_switch_denied",
                session_id=session_id,
                language=language,
                subscription_type=profile.subscription_type.value,
            )
            if profile.subscription_type == SubscriptionType.FREEMIUM:
                return SwitchResult(
                    success=False,
                    outcome=SwitchOutcome.UPGRADE_REQUIRED,
                    message=(
                        f"Language {language} requires premium subscription. "
                        "Upgrade to access all languages."
                    ),
                    active_language=profile.active_language,
                )
            return SwitchResult(
                success=False,
                outcome=SwitchOutcome.UNAVAILABLE,
                message=f"Language {language} not available in your subscription.",
                active_language=profile.active_language,
            )

        target = profile.active_language
        logger.info("language_switched", session_id=session_id, language=target.value)
        return SwitchResult(
            success=True,
            outcome=SwitchOutcome.SWITCHED,
            message=f"Active language changed to {target.value}",
            active_language=target,
        )

    async def get_status(self, session_id: str) -> SubscriptionStatus:
        profile = await self.ensure_profile(session_id)
        return SubscriptionStatus.from_profile(profile)

    async def resolve_response_language(self, session_id: str) -> Language:
        """The language every system response for this turn must use."""
        profile = await self.ensure_profile(session_id)
        logger.debug(
            "response_language_resolved",
            session_id=session_id,
            language=profile.active_language.value,
            subscription_type=profile.subscription_type.value,
        )
        return profile.active_language

    async def classify_mixed_language_input(
        self, session_id: str, detected_languages: set[str]
    ) -> MixedLanguageResult:
        # Read-only: a session without a profile is judged against the default.
        profile = await self.repository.get_profile(session_id)
        active_language = profile.active_language if profile else self.default_language
        result = classify_mixed_language(active_language, detected_languages)
        if result.message:
            logger.warning(
                "mixed_language_detected",
                session_id=session_id,
                detected=sorted(normalize_detected(detected_languages)),
                active_language=active_language.value,
            )
        return result

    def _check_tier(self, session_id: str, profile: UserProfile | None) -> UserProfile:
        if profile is None:
            raise ProfileNotFound(session_id)
        if not profile.matches_tier():
            raise ProfileInvariantViolation(
                session_id,
                f"{profile.subscription_type.value} tier with languages "
                f"{[lang.value for lang in profile.available_languages]}",
            )
        return profile
