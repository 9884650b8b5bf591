"""
Unit tests for the /rss command handler.

Tests cover verb parsing, replies, registry side effects and the
python-telegram-bot callback wiring.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.ext import CommandHandler

from rss_bot.commands import (
    TIMEOUT_USAGE,
    USAGE,
    CommandProcessor,
    make_rss_callback,
    register_commands,
)
from rss_bot.registry import NO_SUBSCRIPTIONS_MESSAGE, SubscriptionRegistry

FEED_A = "https://a.example.com/feed.xml"


@pytest.fixture
def processor(registry: SubscriptionRegistry) -> CommandProcessor:
    return CommandProcessor(registry)


class TestProcess:
    """Tests for CommandProcessor.process."""

    def test_add(self, processor: CommandProcessor, registry: SubscriptionRegistry) -> None:
        assert processor.process("chat-1", f"/rss add {FEED_A}") == "Feed added."
        assert registry.has_subscription("chat-1", FEED_A)

    def test_add_duplicate(self, processor: CommandProcessor) -> None:
        processor.process("chat-1", f"/rss add {FEED_A}")

        assert processor.process("chat-1", f"/rss add {FEED_A}") == "URL already exists."

    def test_add_missing_url(
        self, processor: CommandProcessor, registry: SubscriptionRegistry
    ) -> None:
        assert processor.process("chat-1", "/rss add") == "Please provide a feed URL to add"
        assert registry.channels() == []

    def test_remove(self, processor: CommandProcessor, registry: SubscriptionRegistry) -> None:
        registry.add_subscription("chat-1", FEED_A)

        assert processor.process("chat-1", f"/rss remove {FEED_A}") == "Feed removed."
        assert not registry.has_subscription("chat-1", FEED_A)

    def test_remove_not_subscribed(self, processor: CommandProcessor) -> None:
        assert processor.process("chat-1", f"/rss remove {FEED_A}") == "URL not subscribed."

    def test_remove_missing_url(self, processor: CommandProcessor) -> None:
        assert (
            processor.process("chat-1", "/rss remove")
            == "Please provide a feed URL to remove"
        )

    def test_list(self, processor: CommandProcessor, registry: SubscriptionRegistry) -> None:
        assert processor.process("chat-1", "/rss list") == NO_SUBSCRIPTIONS_MESSAGE

        registry.add_subscription("chat-1", FEED_A)

        assert processor.process("chat-1", "/rss list") == f"Subscribed feeds:\n{FEED_A}"

    def test_update_timeout(
        self, processor: CommandProcessor, registry: SubscriptionRegistry
    ) -> None:
        assert processor.process("chat-1", "/rss update_timeout 10m") == "Timeout updated to 10m"
        assert registry.poll_interval == timedelta(minutes=10)

    def test_update_timeout_invalid(
        self, processor: CommandProcessor, registry: SubscriptionRegistry
    ) -> None:
        reply = processor.process("chat-1", "/rss update_timeout soon")

        assert reply.startswith("Invalid timeout format: ")
        assert registry.poll_interval == timedelta(minutes=1)

    def test_update_timeout_out_of_range(
        self, processor: CommandProcessor, registry: SubscriptionRegistry
    ) -> None:
        reply = processor.process("chat-1", "/rss update_timeout 99999999999h")

        assert reply.startswith("Invalid timeout format: ")
        assert registry.poll_interval == timedelta(minutes=1)

    def test_update_timeout_missing(self, processor: CommandProcessor) -> None:
        assert processor.process("chat-1", "/rss update_timeout") == TIMEOUT_USAGE

    def test_update_timeout_reschedules(self, registry: SubscriptionRegistry) -> None:
        on_change = MagicMock()
        processor = CommandProcessor(registry, on_interval_change=on_change)

        processor.process("chat-1", "/rss update_timeout 5m")
        processor.process("chat-1", "/rss update_timeout bad")

        on_change.assert_called_once_with()

    def test_usage_without_verb(self, processor: CommandProcessor) -> None:
        assert processor.process("chat-1", "/rss") == USAGE

    def test_unknown_verb_ignored(
        self, processor: CommandProcessor, registry: SubscriptionRegistry
    ) -> None:
        assert processor.process("chat-1", f"/rss subscribe {FEED_A}") is None
        assert registry.channels() == []

    @pytest.mark.parametrize("text", ["hello", "", "/rsss list", "/other add x", "rss list"])
    def test_other_text_ignored(self, processor: CommandProcessor, text: str) -> None:
        assert processor.process("chat-1", text) is None

    def test_bot_mention_prefix(
        self, processor: CommandProcessor, registry: SubscriptionRegistry
    ) -> None:
        assert processor.process("chat-1", f"/rss@feed_bot add {FEED_A}") == "Feed added."
        assert registry.has_subscription("chat-1", FEED_A)

    def test_extra_whitespace(self, processor: CommandProcessor) -> None:
        assert processor.process("chat-1", f"  /rss   add \t {FEED_A}  ") == "Feed added."

    def test_channels_isolated(
        self, processor: CommandProcessor, registry: SubscriptionRegistry
    ) -> None:
        processor.process("chat-1", f"/rss add {FEED_A}")

        assert processor.process("chat-2", "/rss list") == NO_SUBSCRIPTIONS_MESSAGE


def make_update(text: str, chat_id: int = -100123, is_bot: bool = False) -> MagicMock:
    update = MagicMock()
    update.effective_message.text = text
    update.effective_message.reply_text = AsyncMock()
    update.effective_chat.id = chat_id
    update.effective_user.is_bot = is_bot
    return update


class TestTelegramCallback:
    """Tests for the python-telegram-bot callback."""

    async def test_replies_in_chat(
        self, processor: CommandProcessor, registry: SubscriptionRegistry
    ) -> None:
        callback = make_rss_callback(processor)
        update = make_update(f"/rss add {FEED_A}")

        await callback(update, MagicMock())

        update.effective_message.reply_text.assert_awaited_once()
        assert update.effective_message.reply_text.call_args.args[0] == "Feed added."
        assert registry.has_subscription("-100123", FEED_A)

    async def test_ignores_bots(
        self, processor: CommandProcessor, registry: SubscriptionRegistry
    ) -> None:
        callback = make_rss_callback(processor)
        update = make_update(f"/rss add {FEED_A}", is_bot=True)

        await callback(update, MagicMock())

        update.effective_message.reply_text.assert_not_called()
        assert registry.channels() == []

    async def test_silent_for_unknown_verb(self, processor: CommandProcessor) -> None:
        callback = make_rss_callback(processor)
        update = make_update("/rss dance")

        await callback(update, MagicMock())

        update.effective_message.reply_text.assert_not_called()

    async def test_no_message(self, processor: CommandProcessor) -> None:
        callback = make_rss_callback(processor)
        update = MagicMock()
        update.effective_message = None

        await callback(update, MagicMock())


class TestRegisterCommands:
    """Tests for handler registration."""

    def test_registers_rss_command(self, processor: CommandProcessor) -> None:
        application = MagicMock()

        register_commands(application, processor)

        application.add_handler.assert_called_once()
        handler = application.add_handler.call_args.args[0]
        assert isinstance(handler, CommandHandler)
        assert handler.commands == frozenset({"rss"})
