"""Supported conversation languages."""

from enum import StrEnum


class Language(StrEnum):
    """Closed set of languages a session can converse in."""

    ES = "es"
    EN = "en"
    FR = "fr"
    IT = "it"
    DE = "de"
    PT = "pt"

    @property
    def display_name(self) -> str:
        """Name of the language written in the language itself."""
        return LANGUAGE_NAMES[self]

    @classmethod
    def parse(cls, code: str | None) -> "Language | None":
        """Return the language for a code, or None if it is not supported."""
        if not code:
            return None
        try:
            return cls(code.strip().lower())
        except ValueError:
            return None


SUPPORTED_LANGUAGES: tuple[Language, ...] = tuple(Language)

LANGUAGE_NAMES: dict[Language, str] = {
    Language.ES: "español",
    Language.EN: "English",
    Language.FR: "français",
    Language.IT: "italiano",
    Language.DE: "Deutsch",
    Language.PT: "português",
}
