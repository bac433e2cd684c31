"""Short-lived dictation session for free-tier users.

The session lives on the user row: a pending audio file id waiting for the user
to name the spoken language, then an armed language that the next voice message
is transcribed with. Expiry is checked whenever the state is read; nothing runs
in the background.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from voicebridge.config import BotSettings, get_settings
from voicebridge.db.models.core import User
from voicebridge.domain.languages import Language, is_supported, parse_language
from voicebridge.logging import logger
from voicebridge.services.exceptions import SessionExpired, UnsupportedLanguage
from voicebridge.services.users import language_pair_of
from voicebridge.utils.datetime import ensure_utc, utc_now


class VoiceSessionState(str, Enum):
    IDLE = "idle"
    AWAITING_SELECTION = "awaiting_selection"
    ARMED = "armed"


class VoiceSessionService:
    def __init__(self, settings: BotSettings | None = None) -> None:
        self.settings = settings or get_settings()

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self.settings.voice_session.ttl_seconds)

    def state(self, user: User, *, now: datetime | None = None) -> VoiceSessionState:
        if self._has_session(user) and self._expired(user, now):
            logger.info("voice_session_expired", user_id=user.id)
            self.clear(user)
        return self._stored_state(user)

    def begin_selection(
        self, user: User, audio_file_id: str | None = None, *, now: datetime | None = None
    ) -> None:
        """Wait for the user to pick the spoken language, optionally holding an audio clip."""

        now = ensure_utc(now) or utc_now()
        user.voice_selected_language = None
        user.voice_awaiting_audio = False
        user.voice_pending_file_id = audio_file_id
        user.voice_expires_at = now + self.ttl
        logger.info("voice_session_awaiting_selection", user_id=user.id, has_audio=audio_file_id is not None)

    def select_language(
        self, user: User, language: Language | str, *, now: datetime | None = None
    ) -> str | None:
        """Arm the session with ``language`` and return any pending audio file id."""

        if not is_supported(language):
            raise UnsupportedLanguage(language)
        selected = parse_language(language)
        if not language_pair_of(user).contains(selected):
            raise UnsupportedLanguage(selected.value, reason="not part of the configured pair")

        now = ensure_utc(now) or utc_now()
        pending = None
        if self.state(user, now=now) == VoiceSessionState.AWAITING_SELECTION:
            pending = user.voice_pending_file_id

        user.voice_selected_language = selected.value
        user.voice_awaiting_audio = True
        user.voice_pending_file_id = pending
        user.voice_expires_at = now + self.ttl
        logger.info("voice_session_armed", user_id=user.id, language=selected.value)
        return pending

    def is_armed(self, user: User, *, now: datetime | None = None) -> bool:
        return self.state(user, now=now) == VoiceSessionState.ARMED

    def armed_language(self, user: User, *, now: datetime | None = None) -> Language | None:
        """Return the armed language, or None when no session exists.

        Raises ``SessionExpired`` when an armed session is found past its expiry;
        the stored state is cleared before raising.
        """

        was_armed = self._stored_state(user) == VoiceSessionState.ARMED
        if self.state(user, now=now) == VoiceSessionState.ARMED:
            return parse_language(user.voice_selected_language)
        if was_armed:
            raise SessionExpired("The selected dictation language has expired.")
        return None

    def pending_audio(self, user: User, *, now: datetime | None = None) -> str | None:
        if self.state(user, now=now) == VoiceSessionState.IDLE:
            return None
        return user.voice_pending_file_id

    @staticmethod
    def clear(user: User) -> None:
        user.voice_selected_language = None
        user.voice_awaiting_audio = False
        user.voice_pending_file_id = None
        user.voice_expires_at = None

    @staticmethod
    def _has_session(user: User) -> bool:
        return bool(
            user.voice_expires_at
            or user.voice_awaiting_audio
            or user.voice_selected_language
            or user.voice_pending_file_id
        )

    @staticmethod
    def _expired(user: User, now: datetime | None) -> bool:
        expires_at = ensure_utc(user.voice_expires_at)
        return expires_at is None or expires_at <= (ensure_utc(now) or utc_now())

    @staticmethod
    def _stored_state(user: User) -> VoiceSessionState:
        if user.voice_awaiting_audio and user.voice_selected_language:
            return VoiceSessionState.ARMED
        if user.voice_expires_at is not None:
            return VoiceSessionState.AWAITING_SELECTION
        return VoiceSessionState.IDLE


__all__ = ["VoiceSessionService", "VoiceSessionState"]
