"""Utility helpers for estimating translation token cost."""

from __future__ import annotations

import math

DEFAULT_CHARS_PER_TOKEN = 4
DEFAULT_TRANSLATED_WEIGHT = 2
DEFAULT_REQUEST_OVERHEAD = 50
DEFAULT_BACK_TRANSLATION_SURCHARGE = 10


def text_tokens(text: str, *, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN) -> int:
    """Approximate tokens as one unit per ``chars_per_token`` characters, rounded up.

    Growth is monotonic per whole token: lengths inside the same ``chars_per_token``
    block cost the same, and crossing into the next block always costs more.
    """

    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token)


def estimate_translation_tokens(
    original: str,
    translated: str,
    *,
    back_translated: bool = False,
    chars_per_token: int = DEFAULT_CHARS_PER_TOKEN,
    translated_weight: int = DEFAULT_TRANSLATED_WEIGHT,
    overhead: int = DEFAULT_REQUEST_OVERHEAD,
    back_translation_surcharge: int = DEFAULT_BACK_TRANSLATION_SURCHARGE,
) -> int:
    """Estimate the quota cost of one translation request.

    Source text counts once, translated text counts ``translated_weight`` times
    (translation output plus the transcription/back-translation passes over it),
    and every request pays a fixed overhead. A back-translation adds a fixed
    surcharge on top.
    """

    total = (
        text_tokens(original, chars_per_token=chars_per_token)
        + text_tokens(translated, chars_per_token=chars_per_token) * translated_weight
        + overhead
    )
    if back_translated:
        total += back_translation_surcharge
    return total


__all__ = ["estimate_translation_tokens", "text_tokens"]
