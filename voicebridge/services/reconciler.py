"""Combine audio and text language detection into a single source language."""

from __future__ import annotations

from collections.abc import Sequence

from voicebridge.domain.languages import Language, is_supported, parse_language
from voicebridge.domain.models import LanguagePair, TargetResolution
from voicebridge.logging import logger
from voicebridge.services.exceptions import UnsupportedLanguage


class LanguageReconciler:
    """Stateless decision rules shared by every tier.

    The text signal is optional; when it is absent the audio detector decides
    alone. Rules, first match wins:

    1. no text signal: audio
    2. both agree: the agreed value
    3. text is one of the expected languages: text
    4. audio is one of the expected languages: audio
    5. neither is expected: text
    """

    def reconcile(
        self,
        audio_detected: str | Language | None,
        text_detected: str | Language | None,
        expected: Sequence[Language] | LanguagePair,
    ) -> Language:
        if not is_supported(audio_detected):
            raise UnsupportedLanguage(audio_detected, reason="not recognised by the audio detector")
        audio = parse_language(audio_detected)

        text: Language | None = None
        if text_detected is not None:
            if is_supported(text_detected):
                text = parse_language(text_detected)
            else:
                logger.warning("text_detection_discarded", detected=text_detected, fallback=audio.value)

        expected_set = set(expected.as_tuple() if isinstance(expected, LanguagePair) else expected)

        if text is None:
            decision, rule = audio, "audio_only"
        elif text == audio:
            decision, rule = audio, "agreement"
        elif text in expected_set:
            decision, rule = text, "text_in_pair"
        elif audio in expected_set:
            decision, rule = audio, "audio_in_pair"
        else:
            decision, rule = text, "text_default"

        logger.debug(
            "language_reconciled",
            audio=audio.value,
            text=text.value if text else None,
            decision=decision.value,
            rule=rule,
        )
        return decision

    @staticmethod
    def resolve_target(source: Language, pair: LanguagePair) -> TargetResolution:
        counterpart = pair.counterpart(source)
        if counterpart is not None:
            return TargetResolution(language=counterpart)
        logger.warning(
            "target_low_confidence",
            source=source.value,
            primary=pair.primary.value,
            secondary=pair.secondary.value,
        )
        return TargetResolution(language=pair.primary, low_confidence=True)


__all__ = ["LanguageReconciler"]
