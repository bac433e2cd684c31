"""Slash-command handlers."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from voicebridge.bot.utils.keyboards import dictation_keyboard, settings_keyboard
from voicebridge.bot.utils.messages import (
    format_history,
    format_limits,
    format_pair,
    format_stats,
    format_tier,
)
from voicebridge.bot.utils.telegram import answer_with_retry
from voicebridge.config import get_settings
from voicebridge.db.models.core import User
from voicebridge.i18n import I18nService
from voicebridge.logging import logger
from voicebridge.services.history import TranslationHistoryService
from voicebridge.services.orchestrator import TranslationOrchestrator
from voicebridge.services.pipeline import VoiceTranslationService
from voicebridge.services.quota import QuotaTracker
from voicebridge.services.tiers import TierService
from voicebridge.services.users import UserService, language_pair_of

router = Router()
HISTORY_LIMIT = 5


def _i18n(db_user: User) -> tuple[I18nService, str]:
    settings = get_settings()
    i18n = I18nService(default_locale=settings.default_language)
    return i18n, i18n.resolve_locale(db_user.language_code)


@router.message(CommandStart())
async def handle_start(message: Message, db_user: User | None = None) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    text = i18n.gettext(
        "start.greeting",
        locale=locale,
        name=message.from_user.full_name,
        pair=format_pair(language_pair_of(db_user)),
        tier=format_tier(db_user, i18n, locale),
    )
    await answer_with_retry(message, text, parse_mode=None)


@router.message(Command("help"))
async def handle_help(message: Message, db_user: User | None = None) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    await answer_with_retry(message, i18n.gettext("help.text", locale=locale), parse_mode=None)


@router.message(Command("settings"))
async def handle_settings(message: Message, db_user: User | None = None) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    pair = language_pair_of(db_user)
    await answer_with_retry(
        message,
        i18n.gettext("settings.title", locale=locale, primary=pair.primary.label, secondary=pair.secondary.label),
        parse_mode=None,
        reply_markup=settings_keyboard(i18n, locale),
    )


@router.message(Command("limits"))
async def handle_limits(message: Message, db_user: User | None = None) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    snapshot = QuotaTracker(get_settings()).snapshot(db_user)
    await answer_with_retry(message, format_limits(snapshot, i18n, locale), parse_mode=None)


@router.message(Command("stats"))
async def handle_stats(message: Message, db_user: User | None = None) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    text = format_stats(db_user, language_pair_of(db_user), i18n, locale)
    await answer_with_retry(message, text, parse_mode=None)


@router.message(Command("history"))
async def handle_history(
    message: Message,
    session: AsyncSession,
    db_user: User | None = None,
) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    rows = await TranslationHistoryService(session).recent(db_user, limit=HISTORY_LIMIT)
    await answer_with_retry(message, format_history(rows, i18n, locale), parse_mode=None)


@router.message(Command("dictate"))
async def handle_dictate(
    message: Message,
    session: AsyncSession,
    orchestrator: TranslationOrchestrator,
    db_user: User | None = None,
) -> None:
    if db_user is None:
        return
    settings = get_settings()
    i18n, locale = _i18n(db_user)
    if TierService.is_premium(db_user):
        await answer_with_retry(message, i18n.gettext("dictate.premium_hint", locale=locale), parse_mode=None)
        return

    await VoiceTranslationService(session, orchestrator, settings).prepare_dictation(db_user)
    await answer_with_retry(
        message,
        i18n.gettext("dictate.prompt", locale=locale),
        parse_mode=None,
        reply_markup=dictation_keyboard(language_pair_of(db_user), i18n, locale),
    )


@router.message(Command("cancel"))
async def handle_cancel(
    message: Message,
    session: AsyncSession,
    orchestrator: TranslationOrchestrator,
    db_user: User | None = None,
) -> None:
    if db_user is None:
        return
    i18n, locale = _i18n(db_user)
    await VoiceTranslationService(session, orchestrator, get_settings()).cancel(db_user)
    await answer_with_retry(message, i18n.gettext("voice.cancelled", locale=locale), parse_mode=None)


@router.message(Command("premium"))
async def handle_grant_premium(
    message: Message,
    session: AsyncSession,
    command: CommandObject,
    db_user: User | None = None,
) -> None:
    target = await _admin_target(message, session, command, usage="Usage: /premium <telegram_id> [days]")
    if target is None:
        return
    settings = get_settings()
    args = (command.args or "").split()
    days = settings.premium_grant_days
    if len(args) >= 2:
        if not args[1].isdigit() or int(args[1]) <= 0:
            await answer_with_retry(message, "Usage: /premium <telegram_id> [days]", parse_mode=None)
            return
        days = int(args[1])

    await TierService(session, settings).grant_premium(target, days=days)
    logger.info("admin_premium_granted", admin_id=message.from_user.id, telegram_id=target.telegram_id, days=days)
    await answer_with_retry(
        message,
        f"Premium granted to {target.telegram_id} until {target.tier_expires_at:%Y-%m-%d %H:%M} UTC",
        parse_mode=None,
    )


@router.message(Command("free"))
async def handle_revoke_premium(
    message: Message,
    session: AsyncSession,
    command: CommandObject,
    db_user: User | None = None,
) -> None:
    target = await _admin_target(message, session, command, usage="Usage: /free <telegram_id>")
    if target is None:
        return
    await TierService(session, get_settings()).revoke_premium(target)
    logger.info("admin_premium_revoked", admin_id=message.from_user.id, telegram_id=target.telegram_id)
    await answer_with_retry(message, f"User {target.telegram_id} moved to the free tier", parse_mode=None)


async def _admin_target(
    message: Message,
    session: AsyncSession,
    command: CommandObject,
    *,
    usage: str,
) -> User | None:
    settings = get_settings()
    if settings.admin_telegram_id is None or message.from_user is None:
        return None
    if message.from_user.id != settings.admin_telegram_id:
        await answer_with_retry(message, "Unauthorized", parse_mode=None)
        return None

    args = (command.args or "").split()
    if not args or not args[0].lstrip("-").isdigit():
        await answer_with_retry(message, usage, parse_mode=None)
        return None

    target = await UserService(session, settings).find_by_telegram_id(int(args[0]))
    if target is None:
        await answer_with_retry(message, f"User {args[0]} not found", parse_mode=None)
    return target


__all__ = ["router"]
