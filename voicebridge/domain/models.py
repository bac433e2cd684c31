"""Pydantic models shared across logic/application layers."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from voicebridge.domain.languages import Language


class LanguagePair(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: Language
    secondary: Language

    @model_validator(mode="after")
    def _distinct(self) -> LanguagePair:
        if self.primary == self.secondary:
            raise ValueError("primary and secondary languages must differ")
        return self

    def as_tuple(self) -> tuple[Language, Language]:
        return (self.primary, self.secondary)

    def contains(self, language: Language | str | None) -> bool:
        return language in (self.primary, self.secondary)

    def counterpart(self, language: Language) -> Language | None:
        if language == self.primary:
            return self.secondary
        if language == self.secondary:
            return self.primary
        return None


class TierFlags(BaseModel):
    premium: bool = False
    auto_language_detection: bool = False
    back_translation: bool = False


class DetectionMethod(str, Enum):
    AUDIO = "audio"
    AUDIO_AND_TEXT = "audio_and_text"
    MANUAL = "manual"


class Transcription(BaseModel):
    text: str
    detected_language: str | None = None


class TargetResolution(BaseModel):
    language: Language
    low_confidence: bool = False


class TranslationResult(BaseModel):
    original_text: str
    source_language: Language
    translated_text: str
    target_language: Language
    back_translation: str | None = None
    audio_detection: str | None = None
    text_detection: str | None = None
    detection_method: DetectionMethod
    tokens_used: int
    premium: bool = False
    low_confidence: bool = False


class UsageSnapshot(BaseModel):
    tier: Literal["free", "premium"]
    daily_used: int
    daily_limit: int
    monthly_used: int
    monthly_limit: int
    total_used: int

    @property
    def daily_remaining(self) -> int:
        return max(0, self.daily_limit - self.daily_used)

    @property
    def monthly_remaining(self) -> int:
        return max(0, self.monthly_limit - self.monthly_used)

    @property
    def daily_percent(self) -> int:
        return _percent(self.daily_used, self.daily_limit)

    @property
    def monthly_percent(self) -> int:
        return _percent(self.monthly_used, self.monthly_limit)


def _percent(used: int, limit: int) -> int:
    if limit <= 0:
        return 100
    return min(100, round(used * 100 / limit))


__all__ = [
    "DetectionMethod",
    "LanguagePair",
    "TargetResolution",
    "TierFlags",
    "Transcription",
    "TranslationResult",
    "UsageSnapshot",
]
