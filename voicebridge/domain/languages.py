"""Closed set of languages the translator works with."""

from __future__ import annotations

from enum import Enum

from voicebridge.services.exceptions import UnsupportedLanguage


class Language(str, Enum):
    UK = "uk"
    EN = "en"
    KA = "ka"
    ID = "id"
    RU = "ru"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def flag(self) -> str:
        return _FLAGS[self]

    @property
    def label(self) -> str:
        return f"{self.flag} {self.display_name}"


_DISPLAY_NAMES: dict[Language, str] = {
    Language.UK: "Українська",
    Language.EN: "English",
    Language.KA: "ქართული",
    Language.ID: "Bahasa Indonesia",
    Language.RU: "Русский",
}

_FLAGS: dict[Language, str] = {
    Language.UK: "🇺🇦",
    Language.EN: "🇺🇸",
    Language.KA: "🇬🇪",
    Language.ID: "🇮🇩",
    Language.RU: "🇷🇺",
}

# Whisper reports languages by English name in verbose_json responses.
SPEECH_LANGUAGE_NAMES: dict[str, Language] = {
    "ukrainian": Language.UK,
    "english": Language.EN,
    "georgian": Language.KA,
    "indonesian": Language.ID,
    "russian": Language.RU,
}


def is_supported(code: str | None) -> bool:
    if not code:
        return False
    return code.strip().lower() in Language._value2member_map_


def parse_language(code: str | Language | None) -> Language:
    """Return the enum member for ``code`` or raise ``UnsupportedLanguage``."""

    if isinstance(code, Language):
        return code
    if not is_supported(code):
        raise UnsupportedLanguage(code)
    return Language(code.strip().lower())


def normalize_detected_language(raw: str | None) -> str | None:
    """Map a speech detector's language name onto a code.

    Unknown names come back lower-cased but otherwise untouched so the caller can
    decide whether the value is acceptable.
    """

    if raw is None:
        return None
    value = raw.strip().lower()
    if not value:
        return None
    mapped = SPEECH_LANGUAGE_NAMES.get(value)
    if mapped is not None:
        return mapped.value
    return value


__all__ = [
    "Language",
    "SPEECH_LANGUAGE_NAMES",
    "is_supported",
    "normalize_detected_language",
    "parse_language",
]
