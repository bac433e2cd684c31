"""Voice message handling and dictation buttons."""

from __future__ import annotations

import asyncio
import contextlib

from aiogram import Bot, F, Router
from aiogram.enums import ChatAction
from aiogram.types import BufferedInputFile, CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from voicebridge.bot.callbacks import DictationLanguageCallback, ListenCallback, VoiceActionCallback
from voicebridge.bot.utils.keyboards import dictation_keyboard, listen_keyboard
from voicebridge.bot.utils.messages import format_translation, split_message
from voicebridge.bot.utils.telegram import answer_voice_with_retry, answer_with_retry, download_file
from voicebridge.config import get_settings
from voicebridge.db.models.core import User
from voicebridge.domain.languages import parse_language
from voicebridge.i18n import I18nService
from voicebridge.logging import logger
from voicebridge.services.exceptions import (
    ExternalComputeError,
    QuotaExceeded,
    ServiceError,
    UnsupportedLanguage,
)
from voicebridge.services.history import TranslationHistoryService
from voicebridge.services.orchestrator import TranslationOrchestrator
from voicebridge.services.pipeline import VoiceRoute, VoiceRouteKind, VoiceTranslationService
from voicebridge.services.speech import OpenAISpeechClient
from voicebridge.services.users import language_pair_of

router = Router()
TYPING_INTERVAL_SECONDS = 4


def _i18n(db_user: User) -> tuple[I18nService, str]:
    i18n = I18nService(default_locale=get_settings().default_language)
    return i18n, i18n.resolve_locale(db_user.language_code)


@router.message(F.voice)
async def handle_voice(
    message: Message,
    session: AsyncSession,
    orchestrator: TranslationOrchestrator,
    db_user: User | None = None,
) -> None:
    if db_user is None:
        return
    settings = get_settings()
    i18n, locale = _i18n(db_user)
    voice = message.voice
    if voice.file_size and voice.file_size > settings.speech.max_audio_bytes:
        await answer_with_retry(message, i18n.gettext("voice.too_large", locale=locale), parse_mode=None)
        return

    service = VoiceTranslationService(session, orchestrator, settings)
    try:
        route = await service.route_voice(db_user, audio_file_id=voice.file_id)
    except QuotaExceeded as exc:
        await _reply_quota_exceeded(message, exc, i18n, locale)
        return

    if route.kind == VoiceRouteKind.SELECT_LANGUAGE:
        key = "voice.session_expired" if route.session_expired else "voice.select_language"
        await answer_with_retry(
            message,
            i18n.gettext(key, locale=locale),
            parse_mode=None,
            reply_markup=dictation_keyboard(language_pair_of(db_user), i18n, locale),
        )
        return

    await _translate_and_reply(message, service, db_user, route, voice.file_id, i18n, locale)


@router.message(F.audio | F.document)
async def handle_audio_file(message: Message, db_user: User | None = None) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    await answer_with_retry(message, i18n.gettext("voice.use_voice_message", locale=locale), parse_mode=None)


@router.message(F.text)
async def handle_text(message: Message, db_user: User | None = None) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    await answer_with_retry(message, i18n.gettext("voice.text_hint", locale=locale), parse_mode=None)


@router.callback_query(DictationLanguageCallback.filter())
async def handle_dictation_language(
    callback: CallbackQuery,
    callback_data: DictationLanguageCallback,
    session: AsyncSession,
    orchestrator: TranslationOrchestrator,
    db_user: User | None = None,
) -> None:
    if db_user is None or callback.message is None:
        return
    settings = get_settings()
    i18n, locale = _i18n(db_user)
    service = VoiceTranslationService(session, orchestrator, settings)
    try:
        pending_file_id = await service.select_language(db_user, callback_data.language)
    except UnsupportedLanguage:
        await callback.answer(i18n.gettext("voice.language_unavailable", locale=locale), show_alert=True)
        return
    await callback.answer()

    language = parse_language(callback_data.language)
    if pending_file_id is None:
        await callback.message.edit_text(
            i18n.gettext(
                "voice.armed",
                locale=locale,
                language=language.label,
                minutes=settings.voice_session.ttl_seconds // 60,
            )
        )
        return

    await callback.message.edit_text(
        i18n.gettext("voice.processing_pending", locale=locale, language=language.label)
    )
    try:
        route = await service.route_voice(db_user, audio_file_id=pending_file_id)
    except QuotaExceeded as exc:
        await _reply_quota_exceeded(callback.message, exc, i18n, locale)
        return
    if route.kind == VoiceRouteKind.SELECT_LANGUAGE:
        await answer_with_retry(
            callback.message,
            i18n.gettext("voice.select_language", locale=locale),
            parse_mode=None,
            reply_markup=dictation_keyboard(language_pair_of(db_user), i18n, locale),
        )
        return
    await _translate_and_reply(callback.message, service, db_user, route, pending_file_id, i18n, locale)


@router.callback_query(VoiceActionCallback.filter(F.action == "cancel"))
async def handle_cancel_dictation(
    callback: CallbackQuery,
    session: AsyncSession,
    orchestrator: TranslationOrchestrator,
    db_user: User | None = None,
) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    await VoiceTranslationService(session, orchestrator, get_settings()).cancel(db_user)
    await callback.answer()
    if callback.message is not None:
        await callback.message.edit_text(i18n.gettext("voice.cancelled", locale=locale))


@router.callback_query(ListenCallback.filter())
async def handle_listen(
    callback: CallbackQuery,
    callback_data: ListenCallback,
    session: AsyncSession,
    speech_client: OpenAISpeechClient,
    db_user: User | None = None,
) -> None:
    if db_user is None or callback.message is None:
        return
    i18n, locale = _i18n(db_user)
    translation = await TranslationHistoryService(session).get(db_user, callback_data.translation_id)
    if translation is None:
        await callback.answer(i18n.gettext("listen.not_found", locale=locale), show_alert=True)
        return
    await callback.answer()

    try:
        audio = await speech_client.synthesize(
            translation.translated_text, parse_language(translation.target_language)
        )
    except Exception:
        logger.exception("speech_synthesis_failed", translation_id=translation.id)
        await answer_with_retry(callback.message, i18n.gettext("listen.failed", locale=locale), parse_mode=None)
        return
    await answer_voice_with_retry(
        callback.message,
        BufferedInputFile(audio, filename=f"translation-{translation.id}.ogg"),
        reply_to_message_id=callback.message.message_id,
    )


async def _translate_and_reply(
    message: Message,
    service: VoiceTranslationService,
    db_user: User,
    route: VoiceRoute,
    file_id: str,
    i18n: I18nService,
    locale: str,
) -> None:
    typing_task = asyncio.create_task(_keep_typing(message.bot, message.chat.id))
    try:
        completed = await service.run(
            db_user,
            route,
            lambda: download_file(message.bot, file_id),
            audio_file_id=file_id,
        )
    except QuotaExceeded as exc:
        await _reply_quota_exceeded(message, exc, i18n, locale)
        return
    except ExternalComputeError as exc:
        logger.warning("voice_translation_failed", user_id=db_user.id, step=exc.step, error=str(exc))
        await answer_with_retry(message, i18n.gettext("voice.failed", locale=locale), parse_mode=None)
        return
    except ServiceError as exc:
        logger.warning("voice_translation_rejected", user_id=db_user.id, error=str(exc))
        await answer_with_retry(message, i18n.gettext("voice.failed", locale=locale), parse_mode=None)
        return
    finally:
        typing_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await typing_task

    chunks = split_message(format_translation(completed.result, i18n, locale))
    for index, chunk in enumerate(chunks):
        markup = listen_keyboard(completed.record.id, i18n, locale) if index == len(chunks) - 1 else None
        await answer_with_retry(message, chunk, parse_mode=None, reply_markup=markup)


async def _reply_quota_exceeded(
    message: Message, exc: QuotaExceeded, i18n: I18nService, locale: str
) -> None:
    await answer_with_retry(
        message,
        i18n.gettext(
            "quota.exceeded",
            locale=locale,
            daily_remaining=exc.daily_remaining,
            monthly_remaining=exc.monthly_remaining,
        ),
        parse_mode=None,
    )


async def _keep_typing(bot: Bot, chat_id: int) -> None:
    while True:
        try:
            await bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
        except Exception as exc:
            logger.debug("chat_action_failed", error=str(exc))
        await asyncio.sleep(TYPING_INTERVAL_SECONDS)


__all__ = ["router"]
