"""Inline keyboards."""

from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from voicebridge.bot.callbacks import (
    DictationLanguageCallback,
    ListenCallback,
    PairLanguageCallback,
    SettingsMenuCallback,
    VoiceActionCallback,
)
from voicebridge.domain.languages import Language
from voicebridge.domain.models import LanguagePair
from voicebridge.i18n import I18nService


def dictation_keyboard(pair: LanguagePair, i18n: I18nService, locale: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for language in pair.as_tuple():
        builder.button(text=language.label, callback_data=DictationLanguageCallback(language=language.value))
    builder.button(
        text=i18n.gettext("voice.cancel_button", locale=locale),
        callback_data=VoiceActionCallback(action="cancel"),
    )
    builder.adjust(2, 1)
    return builder.as_markup()


def listen_keyboard(translation_id: int, i18n: I18nService, locale: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(
        text=i18n.gettext("listen.button", locale=locale),
        callback_data=ListenCallback(translation_id=translation_id),
    )
    return builder.as_markup()


def settings_keyboard(i18n: I18nService, locale: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for action in ("primary", "secondary", "swap"):
        builder.button(
            text=i18n.gettext(f"settings.{action}_button", locale=locale),
            callback_data=SettingsMenuCallback(action=action),
        )
    builder.adjust(2, 1)
    return builder.as_markup()


def pair_language_keyboard(
    slot: str, pair: LanguagePair, i18n: I18nService, locale: str
) -> InlineKeyboardMarkup:
    current = pair.primary if slot == "primary" else pair.secondary
    builder = InlineKeyboardBuilder()
    for language in Language:
        label = f"✅ {language.label}" if language == current else language.label
        builder.button(text=label, callback_data=PairLanguageCallback(slot=slot, language=language.value))
    builder.button(
        text=i18n.gettext("settings.back_button", locale=locale),
        callback_data=SettingsMenuCallback(action="back"),
    )
    builder.adjust(1)
    return builder.as_markup()


__all__ = [
    "dictation_keyboard",
    "listen_keyboard",
    "pair_language_keyboard",
    "settings_keyboard",
]
