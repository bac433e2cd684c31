"""Persistence of completed translations."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voicebridge.db.models.core import Translation, User
from voicebridge.domain.models import TranslationResult
from voicebridge.logging import logger


class TranslationHistoryService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record(
        self, user: User, result: TranslationResult, *, audio_file_id: str | None = None
    ) -> Translation:
        row = Translation(
            user_id=user.id,
            audio_file_id=audio_file_id,
            original_text=result.original_text,
            source_language=result.source_language.value,
            translated_text=result.translated_text,
            target_language=result.target_language.value,
            back_translation=result.back_translation,
            audio_detection=result.audio_detection,
            text_detection=result.text_detection,
            detection_method=result.detection_method.value,
            tokens_used=result.tokens_used,
            premium=result.premium,
            low_confidence=result.low_confidence,
        )
        self.session.add(row)
        user.total_translations = (user.total_translations or 0) + 1
        await self.session.flush()
        logger.info("translation_recorded", user_id=user.id, translation_id=row.id)
        return row

    async def recent(self, user: User, *, limit: int = 5) -> Sequence[Translation]:
        stmt = (
            select(Translation)
            .where(Translation.user_id == user.id)
            .order_by(Translation.created_at.desc(), Translation.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get(self, user: User, translation_id: int) -> Translation | None:
        """Fetch one of the user's own translations; other users' rows are invisible."""

        stmt = select(Translation).where(
            Translation.id == translation_id,
            Translation.user_id == user.id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


__all__ = ["TranslationHistoryService"]
