"""User language-pair settings."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from voicebridge.db.models.core import User
from voicebridge.domain.languages import Language, parse_language
from voicebridge.domain.models import LanguagePair
from voicebridge.logging import logger
from voicebridge.services.users import language_pair_of
from voicebridge.services.voice_session import VoiceSessionService


class LanguageSettingsService:
    """Changes to the pair keep it distinct and drop any dictation session in flight."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def pair_for(user: User) -> LanguagePair:
        return language_pair_of(user)

    async def set_primary(self, user: User, language: Language | str) -> LanguagePair:
        selected = parse_language(language)
        pair = self.pair_for(user)
        if selected == pair.secondary:
            return await self._store(user, LanguagePair(primary=selected, secondary=pair.primary))
        return await self._store(user, LanguagePair(primary=selected, secondary=pair.secondary))

    async def set_secondary(self, user: User, language: Language | str) -> LanguagePair:
        selected = parse_language(language)
        pair = self.pair_for(user)
        if selected == pair.primary:
            return await self._store(user, LanguagePair(primary=pair.secondary, secondary=selected))
        return await self._store(user, LanguagePair(primary=pair.primary, secondary=selected))

    async def swap(self, user: User) -> LanguagePair:
        pair = self.pair_for(user)
        return await self._store(user, LanguagePair(primary=pair.secondary, secondary=pair.primary))

    async def _store(self, user: User, pair: LanguagePair) -> LanguagePair:
        user.primary_language = pair.primary.value
        user.secondary_language = pair.secondary.value
        VoiceSessionService.clear(user)
        await self.session.flush()
        logger.info(
            "language_pair_updated",
            user_id=user.id,
            primary=pair.primary.value,
            secondary=pair.secondary.value,
        )
        return pair


__all__ = ["LanguageSettingsService"]
