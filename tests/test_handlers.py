"""Tests for Telegram handlers with mocked updates."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import FakeCompletionClient, text_response
from handlers.basic import handle_message
from handlers.reminders import disable_reminders, reminder_job, set_reminder_time
from handlers.settings import change_role, change_temperature, set_threshold
from utils.chat_orchestrator import DialogOrchestrator
from utils.errors import CompletionError
from utils.settings_manager import SettingsStore


def make_update(text="Hello", chat_id=555):
    message = MagicMock()
    message.text = text
    message.reply_text = AsyncMock()
    message.chat.send_action = AsyncMock()
    return SimpleNamespace(message=message, effective_chat=SimpleNamespace(id=chat_id))


def make_context(bot_data, args=None):
    return SimpleNamespace(application=SimpleNamespace(bot_data=bot_data), args=args or [])


@pytest.fixture
def bot_data(temp_dir, conversation_store):
    return {
        "orchestrator": DialogOrchestrator(FakeCompletionClient([text_response("Hi!")]), conversation_store),
        "settings_store": SettingsStore(temp_dir / "settings"),
        "conversation_store": conversation_store,
        "model": "GigaChat",
    }


def replies(update):
    return [call.args[0] for call in update.message.reply_text.call_args_list]


@pytest.mark.asyncio
async def test_message_reply_contains_answer_and_tokens(bot_data):
    update = make_update()
    await handle_message(update, make_context(bot_data))

    reply = replies(update)[0]
    assert reply.startswith("Hi!")
    assert "📊 Токены: 10 вход / 5 выход" in reply


@pytest.mark.asyncio
async def test_completion_failure_gives_short_message(bot_data, conversation_store):
    bot_data["orchestrator"] = DialogOrchestrator(
        FakeCompletionClient([CompletionError("boom")]), conversation_store
    )
    update = make_update()
    await handle_message(update, make_context(bot_data))

    assert replies(update) == ["❌ Не удалось получить ответ от модели. Попробуйте позже."]


@pytest.mark.asyncio
async def test_change_temperature_validates_range(bot_data):
    update = make_update()
    await change_temperature(update, make_context(bot_data, ["1.7"]))
    assert replies(update)[0].startswith("❌")

    update = make_update()
    await change_temperature(update, make_context(bot_data, ["0,3"]))
    assert bot_data["settings_store"].load(555).temperature == 0.3


@pytest.mark.asyncio
async def test_set_threshold_without_args_shows_current(bot_data):
    update = make_update()
    await set_threshold(update, make_context(bot_data))
    assert "0.5" in replies(update)[0]


@pytest.mark.asyncio
async def test_change_role_updates_settings_and_history(bot_data, conversation_store):
    update = make_update()
    await change_role(update, make_context(bot_data, ["Ты", "пират"]))

    assert bot_data["settings_store"].load(555).system_prompt == "Ты пират"
    assert conversation_store.load("555").messages[0].content == "Ты пират"


@pytest.mark.asyncio
async def test_set_reminder_time_enables_reminders(bot_data):
    update = make_update()
    await set_reminder_time(update, make_context(bot_data, ["8:30"]))

    settings = bot_data["settings_store"].load(555)
    assert settings.reminder_time == "08:30"
    assert settings.reminder_enabled
    assert "08:30" in replies(update)[0]


@pytest.mark.asyncio
async def test_set_reminder_time_rejects_bad_format(bot_data):
    update = make_update()
    await set_reminder_time(update, make_context(bot_data, ["утром"]))

    assert replies(update)[0].startswith("❌")
    assert not bot_data["settings_store"].load(555).reminder_enabled


@pytest.mark.asyncio
async def test_disable_reminders_keeps_time(bot_data):
    bot_data["settings_store"].update("555", reminder_time="09:00", reminder_enabled=True)
    update = make_update()
    await disable_reminders(update, make_context(bot_data))

    settings = bot_data["settings_store"].load(555)
    assert not settings.reminder_enabled
    assert settings.reminder_time == "09:00"


@pytest.mark.asyncio
async def test_reminder_job_sends_to_due_chat(bot_data):
    bot_data["settings_store"].update("555", reminder_time="00:00", reminder_enabled=True)
    bot = SimpleNamespace(send_message=AsyncMock())
    context = SimpleNamespace(application=SimpleNamespace(bot_data=bot_data), bot=bot)

    await reminder_job(context)
    await reminder_job(context)

    bot.send_message.assert_awaited_once()
    assert bot.send_message.call_args.kwargs["chat_id"] == 555
    assert bot.send_message.call_args.kwargs["text"].endswith("Hi!")
