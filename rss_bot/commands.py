"""
Chat command handling.

Translates ``/rss <verb> [arg]`` messages into registry operations and
wires them into a python-telegram-bot application.
"""

import logging
from collections.abc import Callable

from telegram import BotCommand, LinkPreviewOptions, Update
from telegram.ext import Application, CommandHandler, ContextTypes

from rss_bot.duration import InvalidDurationError
from rss_bot.registry import SubscriptionRegistry

logger = logging.getLogger(__name__)

COMMAND = "rss"
PREFIX = "/" + COMMAND

USAGE = "Usage: /rss <add|remove|list|update_timeout> [url|duration]"
TIMEOUT_USAGE = "Usage: /rss update_timeout <10m|1h|etc>"

BOT_COMMANDS = [
    BotCommand(command=COMMAND, description="Manage RSS feed subscriptions"),
]


class CommandProcessor:
    """
    Platform-independent ``/rss`` command interpreter.

    Returns the reply text for a command, or None when the message is not
    a command this bot answers.
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        on_interval_change: Callable[[], None] | None = None,
    ):
        """
        Parameters
        ----------
        registry : SubscriptionRegistry
            Registry the commands operate on.
        on_interval_change : Callable[[], None] | None
            Called after the poll interval was changed, typically the
            scheduler's ``reschedule``.
        """
        self.registry = registry
        self.on_interval_change = on_interval_change
        self._handlers: dict[str, Callable[[str, list[str]], str]] = {
            "add": self._add,
            "remove": self._remove,
            "list": self._list,
            "update_timeout": self._update_timeout,
        }

    def process(self, channel_id: str, text: str) -> str | None:
        """
        Run a command line for a channel.

        Parameters
        ----------
        channel_id : str
            Channel the message came from.
        text : str
            Raw message text.

        Returns
        -------
        str | None
            Reply to send back, or None to stay silent.
        """
        args = text.split()
        if not args or not _is_prefix(args[0]):
            return None

        if len(args) < 2:
            return USAGE

        handler = self._handlers.get(args[1])
        if handler is None:
            logger.debug("Ignoring unknown verb %r from %s", args[1], channel_id)
            return None

        return handler(channel_id, args[2:])

    def _add(self, channel_id: str, args: list[str]) -> str:
        if not args:
            return "Please provide a feed URL to add"
        if not self.registry.add_subscription(channel_id, args[0]):
            return "URL already exists."
        return "Feed added."

    def _remove(self, channel_id: str, args: list[str]) -> str:
        if not args:
            return "Please provide a feed URL to remove"
        if not self.registry.remove_subscription(channel_id, args[0]):
            return "URL not subscribed."
        return "Feed removed."

    def _list(self, channel_id: str, args: list[str]) -> str:
        return self.registry.list_subscriptions(channel_id)

    def _update_timeout(self, channel_id: str, args: list[str]) -> str:
        if not args:
            return TIMEOUT_USAGE
        try:
            self.registry.set_poll_interval(args[0])
        except InvalidDurationError as e:
            return f"Invalid timeout format: {e}"

        if self.on_interval_change is not None:
            self.on_interval_change()
        return f"Timeout updated to {args[0]}"


def _is_prefix(word: str) -> bool:
    # Telegram appends the bot name in groups: /rss@some_bot
    return word == PREFIX or word.startswith(PREFIX + "@")


def make_rss_callback(processor: CommandProcessor):
    """Build the python-telegram-bot callback for the ``/rss`` command."""

    async def rss_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None or not message.text:
            return
        if update.effective_user is not None and update.effective_user.is_bot:
            return

        channel_id = str(update.effective_chat.id)
        reply = processor.process(channel_id, message.text)
        if reply is not None:
            await message.reply_text(
                reply, link_preview_options=LinkPreviewOptions(is_disabled=True)
            )

    return rss_command


def register_commands(application: Application, processor: CommandProcessor) -> None:
    """Register the ``/rss`` command handler on an application."""
    application.add_handler(CommandHandler(COMMAND, make_rss_callback(processor)))
    logger.debug("Registered /%s command handler", COMMAND)
