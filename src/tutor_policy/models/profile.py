"""Per-session user profile and subscription models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from tutor_policy.models.language import SUPPORTED_LANGUAGES, Language


class SubscriptionType(StrEnum):
    """Subscription tiers."""

    FREEMIUM = "freemium"
    PREMIUM = "premium"


def can_switch_languages(subscription_type: SubscriptionType) -> bool:
    """Only premium sessions may move between languages."""
    return subscription_type == SubscriptionType.PREMIUM


def entitled_languages(
    subscription_type: SubscriptionType, active_language: Language
) -> list[Language]:
    """Languages a tier grants, given the language currently in use."""
    if subscription_type == SubscriptionType.PREMIUM:
        return list(SUPPORTED_LANGUAGES)
    return [active_language]


class UserProfile(BaseModel):
    session_id: str = Field(min_length=1)
    preferred_language: Language = Language.ES
    subscription_type: SubscriptionType = SubscriptionType.FREEMIUM
    available_languages: list[Language]
    active_language: Language
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("available_languages")
    @classmethod
    def _dedupe_languages(cls, value: list[Language]) -> list[Language]:
        languages = list(dict.fromkeys(value))
        if not languages:
            raise ValueError("available_languages must not be empty")
        return languages

    @model_validator(mode="after")
    def _active_language_is_available(self) -> "UserProfile":
        if self.active_language not in self.available_languages:
            raise ValueError(
                f"active_language {self.active_language!s} is not in "
                f"available_languages {[str(lang) for lang in self.available_languages]}"
            )
        return self

    @classmethod
    def create(cls, session_id: str, language: Language) -> "UserProfile":
        """New freemium profile locked to a single language."""
        return cls(
            session_id=session_id,
            preferred_language=language,
            subscription_type=SubscriptionType.FREEMIUM,
            available_languages=[language],
            active_language=language,
        )

    @property
    def can_switch_languages(self) -> bool:
        return can_switch_languages(self.subscription_type)

    def matches_tier(self) -> bool:
        """Whether the available languages are exactly what the tier grants."""
        expected = entitled_languages(self.subscription_type, self.active_language)
        return set(self.available_languages) == set(expected)


class SubscriptionStatus(BaseModel):
    """Read-only view of a session's subscription."""

    subscription_type: SubscriptionType
    active_language: Language
    available_languages: list[Language]

    @property
    def can_switch_languages(self) -> bool:
        return can_switch_languages(self.subscription_type)

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "SubscriptionStatus":
        return cls(
            subscription_type=profile.subscription_type,
            active_language=profile.active_language,
            available_languages=list(profile.available_languages),
        )

    def to_response(self) -> dict:
        """camelCase payload used by the HTTP layer."""
        return {
            "subscriptionType": self.subscription_type.value,
            "activeLanguage": self.active_language.value,
            "availableLanguages": [lang.value for lang in self.available_languages],
            "canSwitchLanguages": self.can_switch_languages,
        }
