"""Localized responses to language switch attempts."""

import re

import structlog

from tutor_policy.conversation.prompts import build_system_prompt
from tutor_policy.models.language import Language
from tutor_policy.models.policy import SwitchOutcome, SwitchResult
from tutor_policy.policy.access import AccessPolicyEngine

logger = structlog.get_logger()

# Written in the newly active language.
SWITCH_CONFIRMATIONS: dict[Language, str] = {
    Language.ES: "¡Perfecto! A partir de ahora hablaremos en español.",
    Language.EN: "Great! From now on we'll speak in English.",
    Language.FR: "Parfait ! À partir de maintenant, nous parlerons en français.",
    Language.IT: "Perfetto! D'ora in poi parleremo in italiano.",
    Language.DE: "Super! Ab jetzt sprechen wir Deutsch.",
    Language.PT: "Perfeito! A partir de agora vamos falar em português.",
}

# Written in the language that stays active; {requested} is the refused one.
UPGRADE_REQUIRED_MESSAGES: dict[Language, str] = {
    Language.ES: (
        "Para practicar en {requested} necesitas una suscripción premium. "
        "Mientras tanto, seguimos en español."
    ),
    Language.EN: (
        "To practice in {requested} you need a premium subscription. "
        "In the meantime, let's keep going in English."
    ),
    Language.FR: (
        "Pour pratiquer en {requested}, il te faut un abonnement premium. "
        "En attendant, continuons en français."
    ),
    Language.IT: (
        "Per esercitarti in {requested} serve un abbonamento premium. "
        "Nel frattempo, continuiamo in italiano."
    ),
    Language.DE: (
        "Um auf {requested} zu üben, brauchst du ein Premium-Abo. "
        "Bis dahin machen wir auf Deutsch weiter."
    ),
    Language.PT: (
        "Para praticar em {requested} você precisa de uma assinatura premium. "
        "Enquanto isso, seguimos em português."
    ),
}

UNAVAILABLE_MESSAGES: dict[Language, str] = {
    Language.ES: "El idioma {requested} no está disponible. Seguimos en español.",
    Language.EN: "The language {requested} is not available. Let's keep going in English.",
    Language.FR: "La langue {requested} n'est pas disponible. Continuons en français.",
    Language.IT: "La lingua {requested} non è disponibile. Continuiamo in italiano.",
    Language.DE: "Die Sprache {requested} ist nicht verfügbar. Wir machen auf Deutsch weiter.",
    Language.PT: "O idioma {requested} não está disponível. Seguimos em português.",
}

# Written in the engine's default language, since the session has none yet.
PROFILE_NOT_FOUND_MESSAGES: dict[Language, str] = {
    Language.ES: "No encuentro tu sesión. Empecemos una conversación antes de cambiar de idioma.",
    Language.EN: "I can't find your session. Let's start a conversation before switching languages.",
    Language.FR: "Je ne trouve pas ta session. Commençons une conversation avant de changer de langue.",
    Language.IT: "Non trovo la tua sessione. Iniziamo una conversazione prima di cambiare lingua.",
    Language.DE: "Ich finde deine Sitzung nicht. Lass uns zuerst ein Gespräch beginnen.",
    Language.PT: "Não encontro a tua sessão. Vamos começar uma conversa antes de mudar de idioma.",
}

LANGUAGE_PATTERNS: dict[Language, re.Pattern] = {
    Language.EN: re.compile(r"\b(the|and|you|are|this|that|with|have|for)\b", re.IGNORECASE),
    Language.ES: re.compile(r"\b(el|la|y|tú|eres|esto|eso|con|tener|para)\b", re.IGNORECASE),
    Language.FR: re.compile(r"\b(le|la|et|tu|es|ce|cette|avec|avoir|pour)\b", re.IGNORECASE),
    Language.IT: re.compile(r"\b(il|la|e|tu|sei|questo|quella|con|avere|per)\b", re.IGNORECASE),
    Language.DE: re.compile(r"\b(der|die|und|du|bist|das|diese|mit|haben|für)\b", re.IGNORECASE),
    Language.PT: re.compile(r"\b(o|a|e|tu|és|isto|isso|com|ter|para)\b", re.IGNORECASE),
}


class LanguageEnforcer:
    """Turns the outcome of a switch attempt into a message for the user.

    The message is always written in the language the session ends up in.
    Reading the session never creates a profile.
    """

    def __init__(self, policy: AccessPolicyEngine):
        self.policy = policy

    async def handle_language_switch_request(
        self, session_id: str, language: str, result: SwitchResult | None = None
    ) -> str:
        """Localized message for a switch attempt.

        Pass the engine's ``result`` to word exactly that outcome; without
        it the outcome is read back from the stored profile.
        """
        if result is not None:
            outcome, active = result.outcome, result.active_language
        else:
            outcome, active = await self._stored_outcome(session_id, language)

        if outcome == SwitchOutcome.PROFILE_NOT_FOUND or active is None:
            logger.info("language_switch_refused", session_id=session_id, reason="no_profile")
            return PROFILE_NOT_FOUND_MESSAGES[self.policy.default_language]
        if outcome == SwitchOutcome.SWITCHED:
            return SWITCH_CONFIRMATIONS[active]

        requested = Language.parse(language)
        requested_name = requested.display_name if requested else language
        if outcome == SwitchOutcome.UPGRADE_REQUIRED:
            template = UPGRADE_REQUIRED_MESSAGES[active]
        else:
            template = UNAVAILABLE_MESSAGES[active]
        logger.info(
            "language_switch_refused",
            session_id=session_id,
            requested=language,
            active_language=active.value,
            reason=outcome.value,
        )
        return template.format(requested=requested_name)

    async def _stored_outcome(
        self, session_id: str, language: str
    ) -> tuple[SwitchOutcome, Language | None]:
        profile = await self.policy.repository.get_profile(session_id)
        if profile is None:
            return SwitchOutcome.PROFILE_NOT_FOUND, None
        if Language.parse(language) == profile.active_language:
            return SwitchOutcome.SWITCHED, profile.active_language
        if Language.parse(language) is not None and not profile.can_switch_languages:
            return SwitchOutcome.UPGRADE_REQUIRED, profile.active_language
        return SwitchOutcome.UNAVAILABLE, profile.active_language

    async def get_system_prompt(self, session_id: str) -> str:
        """Reply-stage prompt pinned to the session's active language."""
        language = await self.policy.resolve_response_language(session_id)
        return build_system_prompt(language)

    def system_prompt_for_language(self, language: str) -> str:
        """Reply-stage prompt for an explicit language, English if unsupported."""
        return build_system_prompt(Language.parse(language) or Language.EN)

    def validate_language_compliance(self, response: str, expected_language: str) -> bool:
        """Rough check that a reply contains common words of the expected language."""
        parsed = Language.parse(expected_language)
        if parsed is None:
            return True
        return bool(LANGUAGE_PATTERNS[parsed].search(response))
