from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from aiogram.dispatcher.event.bases import UNHANDLED
from aiogram.types import CallbackQuery, Chat, ErrorEvent, Message, Update, User, Voice

from voicebridge.services.error_monitor import ErrorMonitor
from voicebridge.services.exceptions import ExternalComputeError


class DummyBot:
    def __init__(self, fail: bool = False) -> None:
        self.sent_messages = []
        self.fail = fail

    async def send_message(self, chat_id, text, parse_mode=None):
        if self.fail:
            raise RuntimeError("telegram is down")
        self.sent_messages.append(
            {
                "chat_id": chat_id,
                "text": text,
                "parse_mode": parse_mode,
            }
        )


def _user() -> User:
    return User(id=123, is_bot=False, first_name="Test", last_name="User", username="tester")


def _make_update(**message_fields) -> Update:
    chat = Chat(id=999, type="private")
    fields = {"text": "hello"}
    fields.update(message_fields)
    message = Message(
        message_id=1,
        date=datetime.now(timezone.utc),
        chat=chat,
        from_user=_user(),
        **fields,
    )
    return Update(update_id=77, message=message)


@pytest.mark.asyncio
async def test_error_monitor_skips_without_admin():
    settings = SimpleNamespace(admin_telegram_id=None, environment="dev")
    monitor = ErrorMonitor(settings)
    bot = DummyBot()
    event = ErrorEvent(update=_make_update(), exception=RuntimeError("boom"))

    result = await monitor.handle_error(event, bot)

    assert result is UNHANDLED
    assert bot.sent_messages == []


@pytest.mark.asyncio
async def test_error_monitor_sends_plain_text_report():
    settings = SimpleNamespace(admin_telegram_id=555, environment="prod")
    monitor = ErrorMonitor(settings)
    bot = DummyBot()
    event = ErrorEvent(update=_make_update(), exception=ValueError("bad input"))

    result = await monitor(event, bot)

    assert result is UNHANDLED
    assert len(bot.sent_messages) == 1
    payload = bot.sent_messages[0]
    assert payload["chat_id"] == 555
    assert payload["parse_mode"] is None
    text = payload["text"]
    assert text.startswith("VOICEBRIDGE ERROR")
    assert "ValueError: bad input" in text
    assert "Update ID: 77" in text
    assert "123 | Test User | @tester" in text
    assert "Failed step" not in text


def test_report_names_failed_step_and_voice_update():
    settings = SimpleNamespace(admin_telegram_id=555, environment="prod")
    monitor = ErrorMonitor(settings)
    voice = Voice(file_id="v1", file_unique_id="u1", duration=7, file_size=2048)
    event = ErrorEvent(
        update=_make_update(text=None, voice=voice),
        exception=ExternalComputeError("transcribe", "speech API unavailable"),
    )

    report = monitor.build_report(event)

    assert "Failed step: transcribe" in report
    assert "voice 7s, 2048 bytes" in report


def test_report_describes_callback_updates():
    settings = SimpleNamespace(admin_telegram_id=555, environment="dev")
    monitor = ErrorMonitor(settings)
    callback = CallbackQuery(id="cb1", from_user=_user(), chat_instance="ci", data="dictate:en")
    event = ErrorEvent(update=Update(update_id=78, callback_query=callback), exception=RuntimeError("x"))

    report = monitor.build_report(event)

    assert "Update: callback dictate:en" in report


def test_report_is_truncated_to_telegram_limit():
    settings = SimpleNamespace(admin_telegram_id=555, environment="dev")
    monitor = ErrorMonitor(settings)
    event = ErrorEvent(update=_make_update(), exception=RuntimeError("x" * 10_000))

    report = monitor.build_report(event)

    assert len(report) <= 3900
    assert report.endswith("...[truncated]")


@pytest.mark.asyncio
async def test_notification_failure_is_logged_not_raised():
    settings = SimpleNamespace(admin_telegram_id=555, environment="dev")
    monitor = ErrorMonitor(settings)
    event = ErrorEvent(update=_make_update(), exception=RuntimeError("boom"))

    assert await monitor.handle_error(event, DummyBot(fail=True)) is UNHANDLED
