"""Unit tests for command handlers (no Telegram, in-memory store)."""

from unittest.mock import MagicMock, patch

import pytest
from aiogram.types import ReplyKeyboardMarkup
from mixpanel import MixpanelException

from post_approver.common.utils import DEFAULT_MESSAGES
from post_approver.handlers.command_handlers import (
    handle_getpost_command,
    handle_help_command,
    handle_start_command,
    handle_status_command,
    handle_unknown_command,
)


@pytest.mark.asyncio
async def test_start_greets(make_message):
    message = make_message("/start")

    result = await handle_start_command(message)

    assert result == "command_start_sent"
    message.answer.assert_awaited_once_with("Hi!")


@pytest.mark.asyncio
async def test_help_lists_commands(make_message):
    message = make_message("/help")

    result = await handle_help_command(message)

    assert result == "command_help_sent"
    text = message.answer.call_args[0][0]
    assert "/getpost" in text
    assert "/status" in text


@pytest.mark.asyncio
async def test_unknown_command(make_message):
    message = make_message("/sayhi")

    result = await handle_unknown_command(message)

    assert result == "command_unknown"
    message.answer.assert_awaited_once_with("I don't know that command")


class TestGetpost:
    @pytest.mark.asyncio
    async def test_sends_post_with_decision_keyboard(self, make_message, moderation):
        message = make_message("/getpost")

        result = await handle_getpost_command(message, moderation)

        assert result == "getpost_sent"
        text = message.answer.call_args[0][0]
        assert text == "Пост: Post 1\nguid-1"
        keyboard = message.answer.call_args[1]["reply_markup"]
        assert isinstance(keyboard, ReplyKeyboardMarkup)
        assert keyboard.one_time_keyboard is True
        labels = [[button.text for button in row] for row in keyboard.keyboard]
        assert labels == [["✔️ Approve", "❌ Reject"], ["👀 Skip"]]
        assert moderation.current.identifier == "guid-1"

    @pytest.mark.asyncio
    async def test_reports_when_nothing_is_available(self, make_message, moderation, store):
        store.candidates = []
        message = make_message("/getpost")

        result = await handle_getpost_command(message, moderation)

        assert result == "getpost_empty"
        message.answer.assert_awaited_once_with(DEFAULT_MESSAGES["no_post"])
        assert moderation.current is None

    @pytest.mark.asyncio
    async def test_reports_store_error(self, make_message, moderation, store):
        store.fail_fetch = True
        message = make_message("/getpost")

        result = await handle_getpost_command(message, moderation)

        assert result == "getpost_error"
        text = message.answer.call_args[0][0]
        assert text.startswith("Произошла ошибка: ")
        assert "503" in text
        assert moderation.current is None


class TestStatus:
    @pytest.mark.asyncio
    async def test_idle_session(self, make_message, moderation):
        message = make_message("/status")

        result = await handle_status_command(message, moderation)

        assert result == "command_status_sent"
        message.answer.assert_awaited_once_with("I'm ok.\nSkipped: 0")

    @pytest.mark.asyncio
    async def test_pending_candidate_and_skips(self, make_message, moderation, skip_cache):
        skip_cache.add("guid-9")
        await moderation.fetch_candidate()
        message = make_message("/status")

        await handle_status_command(message, moderation)

        message.answer.assert_awaited_once_with("I'm ok.\nPending: Post 1\nSkipped: 1")


@pytest.mark.asyncio
async def test_getpost_replies_when_tracking_fails(make_message, moderation):
    message = make_message("/getpost")
    failing_mp = MagicMock()
    failing_mp.track.side_effect = MixpanelException("network down")

    with patch("post_approver.common.mp.mp", failing_mp):
        result = await handle_getpost_command(message, moderation)

    assert result == "getpost_sent"
    assert message.answer.call_args[0][0] == "Пост: Post 1\nguid-1"
