"""Tests for command and voice handlers with dummy Telegram objects."""

from __future__ import annotations

import io
from types import SimpleNamespace

import pytest
from aiogram.exceptions import TelegramNetworkError
from aiogram.filters import CommandObject

from voicebridge.bot.callbacks import ListenCallback
from voicebridge.bot.routers import commands as commands_router
from voicebridge.bot.routers import voice as voice_router
from voicebridge.bot.routers.commands import (
    handle_dictate,
    handle_grant_premium,
    handle_history,
    handle_limits,
    handle_revoke_premium,
)
from voicebridge.bot.routers.voice import handle_listen, handle_text, handle_voice
from voicebridge.domain.languages import Language
from voicebridge.domain.models import DetectionMethod, Transcription, TranslationResult
from voicebridge.services.history import TranslationHistoryService
from voicebridge.services.orchestrator import TranslationOrchestrator
from voicebridge.services.pipeline import VoiceTranslationService
from voicebridge.services.voice_session import VoiceSessionService, VoiceSessionState
from voicebridge.utils.datetime import utc_now

ADMIN_ID = 9000


class DummyBot:
    def __init__(self) -> None:
        self.downloads: list[str] = []

    async def download(self, file_id):
        self.downloads.append(file_id)
        return io.BytesIO(b"OggS")

    async def send_chat_action(self, chat_id, action):
        return True


class DummyMessage:
    def __init__(self, from_user, *, text: str = "", voice=None, bot: DummyBot | None = None) -> None:
        self.text = text
        self.voice = voice
        self.from_user = from_user
        self.bot = bot or DummyBot()
        self.chat = SimpleNamespace(id=from_user.id, type="private")
        self.answers: list[tuple[str, object]] = []

    async def answer(self, text: str, parse_mode: str | None = None, reply_markup=None):
        self.answers.append((text, reply_markup))
        return text


class StaticSpeech:
    async def transcribe(self, audio, *, language_hint=None):
        return Transcription(text="добрий ранок", detected_language="uk")


class PrefixTranslator:
    async def translate(self, text, source, target):
        return f"{target.value}: {text}"

    async def detect_language(self, text, candidates):
        return "uk"


def _from_user(user_id: int = 1000):
    return SimpleNamespace(id=user_id, full_name="Test User", username="tester", language_code="en")


def _voice(file_id: str = "voice-1", file_size: int = 1024):
    return SimpleNamespace(file_id=file_id, file_size=file_size, duration=3)


@pytest.fixture
def orchestrator(settings):
    return TranslationOrchestrator(StaticSpeech(), PrefixTranslator(), settings=settings)


@pytest.fixture(autouse=True)
def patch_settings(monkeypatch, settings):
    settings.admin_telegram_id = ADMIN_ID
    monkeypatch.setattr(commands_router, "get_settings", lambda: settings)
    monkeypatch.setattr(voice_router, "get_settings", lambda: settings)
    return settings


@pytest.mark.asyncio
async def test_free_voice_asks_for_language(session, orchestrator, make_user):
    user = await make_user()
    message = DummyMessage(_from_user(), voice=_voice())

    await handle_voice(message, session=session, orchestrator=orchestrator, db_user=user)

    text, markup = message.answers[0]
    assert text == "Which language is this voice message in?"
    assert markup is not None
    assert user.voice_pending_file_id == "voice-1"


@pytest.mark.asyncio
async def test_premium_voice_is_translated(session, orchestrator, make_user):
    user = await make_user(tier="premium")
    message = DummyMessage(_from_user(), voice=_voice("voice-2"))

    await handle_voice(message, session=session, orchestrator=orchestrator, db_user=user)

    assert message.bot.downloads == ["voice-2"]
    text, markup = message.answers[-1]
    assert "en: добрий ранок" in text
    assert markup is not None
    assert user.total_translations == 1
    assert user.daily_used > 0


@pytest.mark.asyncio
async def test_voice_over_quota_is_refused(session, settings, orchestrator, make_user):
    now = utc_now()
    user = await make_user(
        daily_used=settings.quota.free_daily_tokens, last_daily_reset=now, last_monthly_reset=now
    )
    message = DummyMessage(_from_user(), voice=_voice())

    await handle_voice(message, session=session, orchestrator=orchestrator, db_user=user)

    assert message.answers[0][0].startswith("You have reached your token limit.")
    assert user.voice_pending_file_id is None


@pytest.mark.asyncio
async def test_oversized_voice_is_refused(session, settings, orchestrator, make_user):
    user = await make_user()
    message = DummyMessage(_from_user(), voice=_voice(file_size=settings.speech.max_audio_bytes + 1))

    await handle_voice(message, session=session, orchestrator=orchestrator, db_user=user)

    assert len(message.answers) == 1
    assert user.voice_pending_file_id is None


@pytest.mark.asyncio
async def test_text_gets_hint(make_user):
    user = await make_user()
    message = DummyMessage(_from_user(), text="hello")

    await handle_text(message, db_user=user)

    assert message.answers[0][0].startswith("Send me a voice message")


@pytest.mark.asyncio
async def test_limits_and_history(session, make_user):
    now = utc_now()
    user = await make_user(daily_used=1_000, last_daily_reset=now, last_monthly_reset=now)
    message = DummyMessage(_from_user())

    await handle_limits(message, db_user=user)
    await handle_history(message, session=session, db_user=user)

    assert "Today: 1000 / 10000 tokens (9000 left)" in message.answers[0][0]
    assert message.answers[1][0].startswith("No translations yet")


@pytest.mark.asyncio
async def test_dictate_arms_free_user_only(session, orchestrator, make_user):
    free = await make_user(telegram_id=1)
    premium = await make_user(telegram_id=2, tier="premium")
    free_message = DummyMessage(_from_user(1))
    premium_message = DummyMessage(_from_user(2))

    await handle_dictate(free_message, session=session, orchestrator=orchestrator, db_user=free)
    await handle_dictate(premium_message, session=session, orchestrator=orchestrator, db_user=premium)

    assert free_message.answers[0][0] == "Which language are you going to speak?"
    assert free_message.answers[0][1] is not None
    assert free.voice_expires_at is not None
    assert premium_message.answers[0][1] is None


@pytest.mark.asyncio
async def test_admin_grants_and_revokes_premium(session, make_user):
    target = await make_user(telegram_id=42)
    admin_message = DummyMessage(_from_user(ADMIN_ID))

    await handle_grant_premium(
        admin_message,
        session=session,
        command=CommandObject(prefix="/", command="premium", args="42 10"),
    )
    assert target.tier == "premium"
    assert admin_message.answers[-1][0].startswith("Premium granted to 42 until")

    await handle_revoke_premium(
        admin_message,
        session=session,
        command=CommandObject(prefix="/", command="free", args="42"),
    )
    assert target.tier == "free"
    assert admin_message.answers[-1][0] == "User 42 moved to the free tier"


@pytest.mark.asyncio
async def test_admin_commands_require_admin(session, make_user):
    target = await make_user(telegram_id=43)
    message = DummyMessage(_from_user(43))

    await handle_grant_premium(
        message,
        session=session,
        command=CommandObject(prefix="/", command="premium", args="43"),
    )

    assert message.answers == [("Unauthorized", None)]
    assert target.tier == "free"


@pytest.mark.asyncio
async def test_admin_command_validates_arguments(session, make_user):
    await make_user(telegram_id=44)
    message = DummyMessage(_from_user(ADMIN_ID))

    await handle_grant_premium(
        message,
        session=session,
        command=CommandObject(prefix="/", command="premium", args="44 soon"),
    )
    await handle_revoke_premium(
        message,
        session=session,
        command=CommandObject(prefix="/", command="free", args="777"),
    )

    assert message.answers[0][0] == "Usage: /premium <telegram_id> [days]"
    assert message.answers[1][0] == "User 777 not found"


class FailingDownloadBot(DummyBot):
    async def download(self, file_id):
        self.downloads.append(file_id)
        raise RuntimeError("file is gone")


@pytest.mark.asyncio
async def test_failed_download_ends_armed_session(session, settings, orchestrator, make_user):
    user = await make_user()
    await VoiceTranslationService(session, orchestrator, settings).select_language(user, "uk")
    message = DummyMessage(_from_user(), voice=_voice("voice-3"), bot=FailingDownloadBot())

    await handle_voice(message, session=session, orchestrator=orchestrator, db_user=user)

    assert message.bot.downloads == ["voice-3"]
    assert message.answers == [("Sorry, I could not translate this voice message. Please try again.", None)]
    assert VoiceSessionService(settings).state(user) == VoiceSessionState.IDLE
    assert user.daily_used == 0
    assert user.total_translations == 0


class FlakyVoiceMessage:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.message_id = 5
        self.voices: list[tuple[object, dict]] = []
        self.answers: list[tuple[str, object]] = []

    async def answer_voice(self, voice, **kwargs):
        if self.failures:
            self.failures -= 1
            raise TelegramNetworkError(method=None, message="connection reset")
        self.voices.append((voice, kwargs))
        return voice

    async def answer(self, text: str, parse_mode: str | None = None, reply_markup=None):
        self.answers.append((text, reply_markup))
        return text


class DummyCallback:
    def __init__(self, message) -> None:
        self.message = message
        self.alerts: list[str | None] = []

    async def answer(self, text: str | None = None, show_alert: bool = False):
        self.alerts.append(text)


class SynthesizingSpeech:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    async def synthesize(self, text, language):
        self.calls.append((text, language.value))
        return b"OggS-voice"


@pytest.mark.asyncio
async def test_listen_retries_transient_voice_send(session, make_user, monkeypatch):
    from voicebridge.bot.utils import telegram as telegram_utils

    monkeypatch.setattr(telegram_utils, "TELEGRAM_SEND_BASE_DELAY", 0)
    user = await make_user()
    record = await TranslationHistoryService(session).record(
        user,
        TranslationResult(
            original_text="добрий ранок",
            source_language=Language.UK,
            translated_text="good morning",
            target_language=Language.EN,
            detection_method=DetectionMethod.MANUAL,
            tokens_used=60,
        ),
    )
    message = FlakyVoiceMessage(failures=1)
    callback = DummyCallback(message)
    speech = SynthesizingSpeech()

    await handle_listen(
        callback,
        callback_data=ListenCallback(translation_id=record.id),
        session=session,
        speech_client=speech,
        db_user=user,
    )

    assert speech.calls == [("good morning", "en")]
    assert len(message.voices) == 1
    voice, kwargs = message.voices[0]
    assert voice.filename == f"translation-{record.id}.ogg"
    assert kwargs["reply_to_message_id"] == 5
    assert message.answers == []


@pytest.mark.asyncio
async def test_listen_for_foreign_translation_is_refused(session, make_user):
    owner = await make_user(telegram_id=1)
    stranger = await make_user(telegram_id=2)
    record = await TranslationHistoryService(session).record(
        owner,
        TranslationResult(
            original_text="hi",
            source_language=Language.EN,
            translated_text="привіт",
            target_language=Language.UK,
            detection_method=DetectionMethod.AUDIO,
            tokens_used=52,
        ),
    )
    message = FlakyVoiceMessage(failures=0)
    callback = DummyCallback(message)
    speech = SynthesizingSpeech()

    await handle_listen(
        callback,
        callback_data=ListenCallback(translation_id=record.id),
        session=session,
        speech_client=speech,
        db_user=stranger,
    )

    assert callback.alerts == ["This translation is no longer available."]
    assert speech.calls == []
    assert message.voices == []
