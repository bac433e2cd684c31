"""Typed inline-button payloads."""

from __future__ import annotations

from typing import Literal

from aiogram.filters.callback_data import CallbackData


class DictationLanguageCallback(CallbackData, prefix="dictate"):
    language: str


class VoiceActionCallback(CallbackData, prefix="voice"):
    action: Literal["cancel"]


class ListenCallback(CallbackData, prefix="listen"):
    translation_id: int


class SettingsMenuCallback(CallbackData, prefix="settings"):
    action: Literal["primary", "secondary", "swap", "back"]


class PairLanguageCallback(CallbackData, prefix="pair"):
    slot: Literal["primary", "secondary"]
    language: str


__all__ = [
    "DictationLanguageCallback",
    "ListenCallback",
    "PairLanguageCallback",
    "SettingsMenuCallback",
    "VoiceActionCallback",
]
