"""Language pair settings menu."""

from __future__ import annotations

from aiogram import Router
from aiogram.types import CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from voicebridge.bot.callbacks import PairLanguageCallback, SettingsMenuCallback
from voicebridge.bot.utils.keyboards import pair_language_keyboard, settings_keyboard
from voicebridge.config import get_settings
from voicebridge.db.models.core import User
from voicebridge.domain.models import LanguagePair
from voicebridge.i18n import I18nService
from voicebridge.services.exceptions import UnsupportedLanguage
from voicebridge.services.languages import LanguageSettingsService

router = Router()


def _title(pair: LanguagePair, i18n: I18nService, locale: str) -> str:
    return i18n.gettext(
        "settings.title", locale=locale, primary=pair.primary.label, secondary=pair.secondary.label
    )


@router.callback_query(SettingsMenuCallback.filter())
async def handle_settings_menu(
    callback: CallbackQuery,
    callback_data: SettingsMenuCallback,
    session: AsyncSession,
    db_user: User | None = None,
) -> None:
    if db_user is None or callback.message is None:
        return
    i18n = I18nService(default_locale=get_settings().default_language)
    locale = i18n.resolve_locale(db_user.language_code)
    service = LanguageSettingsService(session)

    if callback_data.action in ("primary", "secondary"):
        pair = service.pair_for(db_user)
        await callback.message.edit_text(
            i18n.gettext(f"settings.choose_{callback_data.action}", locale=locale),
            reply_markup=pair_language_keyboard(callback_data.action, pair, i18n, locale),
        )
        await callback.answer()
        return

    if callback_data.action == "swap":
        pair = await service.swap(db_user)
        await callback.answer(i18n.gettext("settings.swapped", locale=locale))
    else:
        pair = service.pair_for(db_user)
        await callback.answer()
    await callback.message.edit_text(_title(pair, i18n, locale), reply_markup=settings_keyboard(i18n, locale))


@router.callback_query(PairLanguageCallback.filter())
async def handle_pair_language(
    callback: CallbackQuery,
    callback_data: PairLanguageCallback,
    session: AsyncSession,
    db_user: User | None = None,
) -> None:
    if db_user is None or callback.message is None:
        return
    i18n = I18nService(default_locale=get_settings().default_language)
    locale = i18n.resolve_locale(db_user.language_code)
    service = LanguageSettingsService(session)
    try:
        if callback_data.slot == "primary":
            pair = await service.set_primary(db_user, callback_data.language)
        else:
            pair = await service.set_secondary(db_user, callback_data.language)
    except UnsupportedLanguage:
        await callback.answer(i18n.gettext("voice.language_unavailable", locale=locale), show_alert=True)
        return

    await callback.answer(i18n.gettext("settings.saved", locale=locale))
    await callback.message.edit_text(_title(pair, i18n, locale), reply_markup=settings_keyboard(i18n, locale))


__all__ = ["router"]
