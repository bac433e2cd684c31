"""Request-level voice translation: locking, quota gate, routing, commit and history."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from voicebridge.config import BotSettings, get_settings
from voicebridge.db.models.core import Translation, User
from voicebridge.domain.languages import Language
from voicebridge.domain.models import TranslationResult
from voicebridge.logging import logger
from voicebridge.services.exceptions import ExternalComputeError, SessionExpired
from voicebridge.services.history import TranslationHistoryService
from voicebridge.services.orchestrator import TranslationOrchestrator
from voicebridge.services.quota import QuotaTracker
from voicebridge.services.tiers import TierService
from voicebridge.services.users import UserService, language_pair_of
from voicebridge.services.voice_session import VoiceSessionService


AudioSource = Callable[[], Awaitable[bytes]]


class VoiceRouteKind(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"
    SELECT_LANGUAGE = "select_language"


@dataclass(slots=True)
class VoiceRoute:
    kind: VoiceRouteKind
    source: Language | None = None
    target: Language | None = None
    session_expired: bool = False


@dataclass(slots=True)
class CompletedTranslation:
    result: TranslationResult
    record: Translation


class VoiceTranslationService:
    """Drives one voice message through the translator for a user.

    Every public method takes the user's row lock first, so quota and session
    mutations of concurrent requests for the same user are serialized by the
    database. The surrounding transaction is committed by the caller.
    """

    def __init__(
        self,
        session: AsyncSession,
        orchestrator: TranslationOrchestrator,
        settings: BotSettings | None = None,
    ) -> None:
        self.session = session
        self.orchestrator = orchestrator
        self.settings = settings or get_settings()
        self.users = UserService(session, self.settings)
        self.tiers = TierService(session, self.settings)
        self.quota = QuotaTracker(self.settings)
        self.voice_sessions = VoiceSessionService(self.settings)
        self.history = TranslationHistoryService(session)

    async def route_voice(self, user: User, *, audio_file_id: str | None = None) -> VoiceRoute:
        """Decide how an incoming clip is handled. Raises ``QuotaExceeded`` before any compute."""

        user = await self.users.lock(user)
        self.tiers.expire_outdated(user)
        self.quota.ensure_can_consume(user, self.settings.quota.default_estimate_tokens)

        if self.tiers.is_premium(user):
            return VoiceRoute(kind=VoiceRouteKind.AUTO)

        try:
            armed = self.voice_sessions.armed_language(user)
        except SessionExpired:
            self.voice_sessions.begin_selection(user, audio_file_id)
            return VoiceRoute(kind=VoiceRouteKind.SELECT_LANGUAGE, session_expired=True)

        target = language_pair_of(user).counterpart(armed) if armed is not None else None
        if armed is None or target is None:
            self.voice_sessions.begin_selection(user, audio_file_id)
            return VoiceRoute(kind=VoiceRouteKind.SELECT_LANGUAGE)
        return VoiceRoute(kind=VoiceRouteKind.MANUAL, source=armed, target=target)

    async def prepare_dictation(self, user: User) -> None:
        """Open language selection ahead of recording (no clip yet)."""

        user = await self.users.lock(user)
        self.voice_sessions.begin_selection(user)

    async def select_language(self, user: User, language: Language | str) -> str | None:
        """Arm the dictation language; returns the clip waiting for it, if any."""

        user = await self.users.lock(user)
        return self.voice_sessions.select_language(user, language)

    async def cancel(self, user: User) -> None:
        user = await self.users.lock(user)
        self.voice_sessions.clear(user)
        logger.info("voice_session_cancelled", user_id=user.id)

    async def run(
        self,
        user: User,
        route: VoiceRoute,
        audio: bytes | AudioSource,
        *,
        audio_file_id: str | None = None,
    ) -> CompletedTranslation:
        """Translate one clip.

        ``audio`` may be a coroutine factory, awaited under the pipeline timeout.
        A manual session ends here whether the fetch, the translation or neither fails.
        """

        if route.kind == VoiceRouteKind.SELECT_LANGUAGE:
            raise ValueError("language selection routes cannot be executed")

        user = await self.users.lock(user)
        self.quota.ensure_can_consume(user, self.settings.quota.default_estimate_tokens)
        flags = self.tiers.flags_for(user)

        try:
            async with asyncio.timeout(self.settings.pipeline_timeout_seconds):
                if callable(audio):
                    audio = await audio()
                if route.kind == VoiceRouteKind.AUTO:
                    result = await self.orchestrator.translate_auto(audio, language_pair_of(user), flags)
                else:
                    result = await self.orchestrator.translate_manual(audio, route.source, route.target)
        except TimeoutError as exc:
            logger.warning(
                "pipeline_timeout",
                user_id=user.id,
                timeout=self.settings.pipeline_timeout_seconds,
            )
            raise ExternalComputeError("pipeline", "timed out") from exc
        finally:
            if route.kind == VoiceRouteKind.MANUAL:
                self.voice_sessions.clear(user)

        self.quota.commit(user, result.tokens_used)
        record = await self.history.record(user, result, audio_file_id=audio_file_id)
        return CompletedTranslation(result=result, record=record)


__all__ = ["CompletedTranslation", "VoiceRoute", "VoiceRouteKind", "VoiceTranslationService"]
