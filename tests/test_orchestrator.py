"""Tests for the translation orchestrator with fake speech and translator backends."""

from __future__ import annotations

import asyncio

import pytest

from voicebridge.domain.languages import Language
from voicebridge.domain.models import DetectionMethod, LanguagePair, TierFlags, Transcription
from voicebridge.services.exceptions import ExternalComputeError, InvalidLanguagePair, UnsupportedLanguage
from voicebridge.services.orchestrator import TranslationOrchestrator

UK_EN = LanguagePair(primary=Language.UK, secondary=Language.EN)
PREMIUM = TierFlags(premium=True, auto_language_detection=True, back_translation=True)
FREE = TierFlags()


class FakeSpeech:
    def __init__(self, text: str = "добрий день", language: str | None = "uk", error: Exception | None = None):
        self.text = text
        self.language = language
        self.error = error
        self.calls: list[tuple[bytes, Language | None]] = []

    async def transcribe(self, audio: bytes, *, language_hint: Language | None = None) -> Transcription:
        self.calls.append((audio, language_hint))
        if self.error is not None:
            raise self.error
        return Transcription(text=self.text, detected_language=self.language)


class FakeTranslator:
    def __init__(self, detected: str = "uk", fail_on: str | None = None):
        self.detected = detected
        self.fail_on = fail_on
        self.translations: list[tuple[str, Language, Language]] = []
        self.detections: list[list[Language]] = []

    async def translate(self, text: str, source: Language, target: Language) -> str:
        self.translations.append((text, source, target))
        if self.fail_on == "translate" or (self.fail_on == "back_translate" and len(self.translations) == 2):
            raise RuntimeError("model unavailable")
        return f"[{source.value}->{target.value}] {text}"

    async def detect_language(self, text: str, candidates) -> str:
        self.detections.append(list(candidates))
        if self.fail_on == "detect_language":
            raise RuntimeError("model unavailable")
        return self.detected


@pytest.mark.asyncio
async def test_free_flags_use_audio_detection_only(settings):
    speech = FakeSpeech(language="uk")
    translator = FakeTranslator()
    orchestrator = TranslationOrchestrator(speech, translator, settings=settings)

    result = await orchestrator.translate_auto(b"ogg", UK_EN, FREE)

    assert translator.detections == []
    assert result.source_language == Language.UK
    assert result.target_language == Language.EN
    assert result.back_translation is None
    assert result.detection_method == DetectionMethod.AUDIO
    assert result.audio_detection == "uk"
    assert result.text_detection is None
    assert result.premium is False


@pytest.mark.asyncio
async def test_premium_reconciles_and_back_translates(settings):
    speech = FakeSpeech(text="hello", language="ru")
    translator = FakeTranslator(detected="en")
    orchestrator = TranslationOrchestrator(speech, translator, settings=settings)

    result = await orchestrator.translate_auto(b"ogg", UK_EN, PREMIUM)

    assert result.source_language == Language.EN
    assert result.target_language == Language.UK
    assert result.audio_detection == "ru"
    assert result.text_detection == "en"
    assert result.detection_method == DetectionMethod.AUDIO_AND_TEXT
    assert result.back_translation == "[uk->en] [en->uk] hello"
    assert translator.translations[1][1:] == (Language.UK, Language.EN)
    assert translator.detections[0][:2] == [Language.UK, Language.EN]


@pytest.mark.asyncio
async def test_back_translation_costs_more(settings):
    checked = await TranslationOrchestrator(FakeSpeech(), FakeTranslator(), settings=settings).translate_auto(
        b"ogg", UK_EN, TierFlags(premium=True, back_translation=True)
    )
    plain = await TranslationOrchestrator(FakeSpeech(), FakeTranslator(), settings=settings).translate_auto(
        b"ogg", UK_EN, FREE
    )

    assert checked.translated_text == plain.translated_text
    assert checked.tokens_used == plain.tokens_used + settings.token_cost.back_translation_surcharge


@pytest.mark.asyncio
async def test_source_outside_pair_is_low_confidence(settings):
    orchestrator = TranslationOrchestrator(FakeSpeech(language="ka"), FakeTranslator(), settings=settings)

    result = await orchestrator.translate_auto(b"ogg", UK_EN, FREE)

    assert result.source_language == Language.KA
    assert result.target_language == Language.UK
    assert result.low_confidence is True


@pytest.mark.asyncio
async def test_unknown_audio_language_is_rejected(settings):
    orchestrator = TranslationOrchestrator(FakeSpeech(language="french"), FakeTranslator(), settings=settings)

    with pytest.raises(UnsupportedLanguage):
        await orchestrator.translate_auto(b"ogg", UK_EN, FREE)


@pytest.mark.asyncio
async def test_manual_uses_hint_and_never_back_translates(settings):
    speech = FakeSpeech(language="uk")
    translator = FakeTranslator()
    orchestrator = TranslationOrchestrator(speech, translator, settings=settings)

    result = await orchestrator.translate_manual(b"ogg", Language.UK, Language.EN)

    assert speech.calls == [(b"ogg", Language.UK)]
    assert len(translator.translations) == 1
    assert translator.detections == []
    assert result.detection_method == DetectionMethod.MANUAL
    assert result.back_translation is None
    # ceil(11/4) + 2 * ceil(len("[uk->en] добрий день")/4) + 50
    assert result.tokens_used == 3 + 2 * 5 + 50


@pytest.mark.asyncio
async def test_manual_rejects_identical_languages(settings):
    orchestrator = TranslationOrchestrator(FakeSpeech(), FakeTranslator(), settings=settings)

    with pytest.raises(InvalidLanguagePair):
        await orchestrator.translate_manual(b"ogg", Language.EN, Language.EN)


@pytest.mark.asyncio
@pytest.mark.parametrize("step", ["translate", "detect_language", "back_translate"])
async def test_failures_carry_step_name(settings, step):
    orchestrator = TranslationOrchestrator(FakeSpeech(), FakeTranslator(fail_on=step), settings=settings)

    with pytest.raises(ExternalComputeError) as excinfo:
        await orchestrator.translate_auto(b"ogg", UK_EN, PREMIUM)

    assert excinfo.value.step == step
    assert isinstance(excinfo.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_transcription_failure_and_empty_text(settings):
    failing = TranslationOrchestrator(FakeSpeech(error=OSError("network")), FakeTranslator(), settings=settings)
    with pytest.raises(ExternalComputeError) as excinfo:
        await failing.translate_auto(b"ogg", UK_EN, FREE)
    assert excinfo.value.step == "transcribe"

    silent = TranslationOrchestrator(FakeSpeech(text="   "), FakeTranslator(), settings=settings)
    with pytest.raises(ExternalComputeError) as excinfo:
        await silent.translate_manual(b"ogg", Language.UK, Language.EN)
    assert excinfo.value.step == "transcribe"


@pytest.mark.asyncio
async def test_cancellation_is_not_wrapped(settings):
    orchestrator = TranslationOrchestrator(
        FakeSpeech(error=asyncio.CancelledError()), FakeTranslator(), settings=settings
    )

    with pytest.raises(asyncio.CancelledError):
        await orchestrator.translate_auto(b"ogg", UK_EN, FREE)
