"""Sequence transcription, detection, translation and cost estimation."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeVar

from voicebridge.config import BotSettings, get_settings
from voicebridge.domain.languages import Language
from voicebridge.domain.models import (
    DetectionMethod,
    LanguagePair,
    TierFlags,
    Transcription,
    TranslationResult,
)
from voicebridge.logging import logger
from voicebridge.services.exceptions import ExternalComputeError, InvalidLanguagePair, ServiceError
from voicebridge.services.reconciler import LanguageReconciler
from voicebridge.utils.tokens import estimate_translation_tokens

T = TypeVar("T")


class SpeechToText(Protocol):
    async def transcribe(self, audio: bytes, *, language_hint: Language | None = None) -> Transcription: ...


class TextTranslator(Protocol):
    async def translate(self, text: str, source: Language, target: Language) -> str: ...

    async def detect_language(self, text: str, candidates: Sequence[Language]) -> str: ...


class TranslationOrchestrator:
    """One request, strictly sequential steps, no persistence.

    Quota checks, locking and storage belong to the caller; any external failure
    surfaces as ``ExternalComputeError`` naming the step that failed.
    """

    def __init__(
        self,
        speech: SpeechToText,
        translator: TextTranslator,
        *,
        reconciler: LanguageReconciler | None = None,
        settings: BotSettings | None = None,
    ) -> None:
        self.speech = speech
        self.translator = translator
        self.reconciler = reconciler or LanguageReconciler()
        self.settings = settings or get_settings()

    async def translate_auto(self, audio: bytes, pair: LanguagePair, flags: TierFlags) -> TranslationResult:
        transcription = await self._transcribe(audio)
        audio_detection = transcription.detected_language

        text_detection: str | None = None
        if flags.auto_language_detection:
            candidates = [*pair.as_tuple(), *(lang for lang in Language if not pair.contains(lang))]
            text_detection = await self._step(
                "detect_language",
                lambda: self.translator.detect_language(transcription.text, candidates),
            )

        source = self.reconciler.reconcile(audio_detection, text_detection, pair)
        target = self.reconciler.resolve_target(source, pair)
        translated = await self._step(
            "translate",
            lambda: self.translator.translate(transcription.text, source, target.language),
        )

        back_translation: str | None = None
        if flags.back_translation:
            back_translation = await self._step(
                "back_translate",
                lambda: self.translator.translate(translated, target.language, source),
            )

        result = TranslationResult(
            original_text=transcription.text,
            source_language=source,
            translated_text=translated,
            target_language=target.language,
            back_translation=back_translation,
            audio_detection=audio_detection,
            text_detection=text_detection,
            detection_method=(
                DetectionMethod.AUDIO_AND_TEXT if flags.auto_language_detection else DetectionMethod.AUDIO
            ),
            tokens_used=self._estimate(transcription.text, translated, back_translation is not None),
            premium=flags.premium,
            low_confidence=target.low_confidence,
        )
        logger.info(
            "translation_completed",
            mode="auto",
            source=source.value,
            target=target.language.value,
            tokens=result.tokens_used,
            premium=flags.premium,
        )
        return result

    async def translate_manual(
        self, audio: bytes, from_language: Language, to_language: Language
    ) -> TranslationResult:
        if from_language == to_language:
            raise InvalidLanguagePair("source and target languages must differ")

        transcription = await self._transcribe(audio, language_hint=from_language)
        translated = await self._step(
            "translate",
            lambda: self.translator.translate(transcription.text, from_language, to_language),
        )
        result = TranslationResult(
            original_text=transcription.text,
            source_language=from_language,
            translated_text=translated,
            target_language=to_language,
            audio_detection=transcription.detected_language,
            detection_method=DetectionMethod.MANUAL,
            tokens_used=self._estimate(transcription.text, translated, False),
        )
        logger.info(
            "translation_completed",
            mode="manual",
            source=from_language.value,
            target=to_language.value,
            tokens=result.tokens_used,
        )
        return result

    async def _transcribe(self, audio: bytes, *, language_hint: Language | None = None) -> Transcription:
        transcription = await self._step(
            "transcribe",
            lambda: self.speech.transcribe(audio, language_hint=language_hint),
        )
        if not transcription.text.strip():
            logger.warning("transcription_empty", hint=language_hint.value if language_hint else None)
            raise ExternalComputeError("transcribe", "empty transcription")
        return transcription

    def _estimate(self, original: str, translated: str, back_translated: bool) -> int:
        cost = self.settings.token_cost
        return estimate_translation_tokens(
            original,
            translated,
            back_translated=back_translated,
            chars_per_token=cost.chars_per_token,
            translated_weight=cost.translated_weight,
            overhead=cost.request_overhead,
            back_translation_surcharge=cost.back_translation_surcharge,
        )

    @staticmethod
    async def _step(step: str, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await operation()
        except ServiceError:
            raise
        except Exception as exc:
            logger.error("external_step_failed", step=step, error=str(exc), exc_info=True)
            raise ExternalComputeError(step, str(exc)) from exc


__all__ = ["SpeechToText", "TextTranslator", "TranslationOrchestrator"]
