"""Plain-text rendering of translation results, limits and statistics."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from voicebridge.db.models.core import Translation, User
from voicebridge.domain.languages import is_supported, parse_language
from voicebridge.domain.models import LanguagePair, TranslationResult, UsageSnapshot
from voicebridge.i18n import I18nService
from voicebridge.utils.datetime import ensure_utc

TELEGRAM_TEXT_LIMIT = 4096
BAR_WIDTH = 10
HISTORY_PREVIEW_CHARS = 80


def progress_bar(percent: int, width: int = BAR_WIDTH) -> str:
    percent = max(0, min(100, percent))
    filled = round(percent * width / 100)
    return "█" * filled + "░" * (width - filled)


def split_message(text: str, limit: int = TELEGRAM_TEXT_LIMIT) -> list[str]:
    """Split on line boundaries so each chunk fits one Telegram message."""

    chunks: list[str] = []
    buffer = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if buffer:
                chunks.append(buffer)
                buffer = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(buffer) + len(line) > limit:
            chunks.append(buffer)
            buffer = ""
        buffer += line
    if buffer:
        chunks.append(buffer)
    return [chunk.strip("\n") for chunk in chunks if chunk.strip()]


def format_pair(pair: LanguagePair) -> str:
    return f"{pair.primary.label} ⇄ {pair.secondary.label}"


def format_date(value: datetime | None) -> str:
    value = ensure_utc(value)
    return value.strftime("%Y-%m-%d") if value else "-"


def format_tier(user: User, i18n: I18nService, locale: str) -> str:
    if user.tier != "premium":
        return i18n.gettext("tier.free", locale=locale)
    if user.tier_expires_at is None:
        return i18n.gettext("tier.premium_permanent", locale=locale)
    return i18n.gettext("tier.premium_until", locale=locale, date=format_date(user.tier_expires_at))


def format_translation(result: TranslationResult, i18n: I18nService, locale: str) -> str:
    lines = [
        i18n.gettext("result.original", locale=locale, language=result.source_language.label),
        result.original_text,
        "",
        i18n.gettext("result.translation", locale=locale, language=result.target_language.label),
        result.translated_text,
    ]
    if result.back_translation:
        lines.extend(["", i18n.gettext("result.back_translation", locale=locale), result.back_translation])
    if result.low_confidence:
        lines.extend(["", i18n.gettext("result.low_confidence", locale=locale)])
    if result.premium and result.text_detection:
        lines.extend(
            [
                "",
                i18n.gettext(
                    "result.detection",
                    locale=locale,
                    audio=result.audio_detection or "?",
                    text=result.text_detection,
                ),
            ]
        )
    lines.extend(["", i18n.gettext("result.tokens", locale=locale, tokens=result.tokens_used)])
    return "\n".join(lines)


def format_limits(snapshot: UsageSnapshot, i18n: I18nService, locale: str) -> str:
    tier = i18n.gettext(f"tier.{snapshot.tier}", locale=locale)
    return "\n".join(
        [
            i18n.gettext("limits.header", locale=locale, tier=tier),
            "",
            i18n.gettext(
                "limits.daily",
                locale=locale,
                used=snapshot.daily_used,
                limit=snapshot.daily_limit,
                remaining=snapshot.daily_remaining,
            ),
            f"{progress_bar(snapshot.daily_percent)} {snapshot.daily_percent}%",
            "",
            i18n.gettext(
                "limits.monthly",
                locale=locale,
                used=snapshot.monthly_used,
                limit=snapshot.monthly_limit,
                remaining=snapshot.monthly_remaining,
            ),
            f"{progress_bar(snapshot.monthly_percent)} {snapshot.monthly_percent}%",
        ]
    )


def format_stats(user: User, pair: LanguagePair, i18n: I18nService, locale: str) -> str:
    return i18n.gettext(
        "stats.summary",
        locale=locale,
        translations=user.total_translations or 0,
        tokens=user.total_used or 0,
        pair=format_pair(pair),
        tier=format_tier(user, i18n, locale),
        since=format_date(user.created_at),
    )


def _language_label(code: str) -> str:
    if is_supported(code):
        return parse_language(code).flag
    return code


def format_history(rows: Sequence[Translation], i18n: I18nService, locale: str) -> str:
    if not rows:
        return i18n.gettext("history.empty", locale=locale)
    lines = [i18n.gettext("history.header", locale=locale, count=len(rows))]
    for row in rows:
        preview = row.translated_text
        if len(preview) > HISTORY_PREVIEW_CHARS:
            preview = preview[: HISTORY_PREVIEW_CHARS - 1].rstrip() + "…"
        lines.append(
            f"{format_date(row.created_at)} {_language_label(row.source_language)}→"
            f"{_language_label(row.target_language)} {preview}"
        )
    return "\n".join(lines)


__all__ = [
    "format_history",
    "format_limits",
    "format_pair",
    "format_stats",
    "format_tier",
    "format_translation",
    "progress_bar",
    "split_message",
]
