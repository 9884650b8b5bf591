"""
Telegram notification client.

Formats feed items and sends them to Telegram chats using the Bot API.
"""

import html
import logging
from dataclasses import replace

from telegram import Bot, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.request import HTTPXRequest

from rss_bot.config import TelegramConfig
from rss_bot.entry import FeedItem
from rss_bot.notifier import DeliveryError

logger = logging.getLogger(__name__)

# Maximum message length for Telegram
MAX_MESSAGE_LENGTH = 4096


class TelegramNotifier:
    """
    Telegram notification client.

    Sends formatted messages to Telegram chats. The chat id of each
    message is the channel the item was fetched for.
    """

    def __init__(
        self,
        config: TelegramConfig,
        bot: Bot | None = None,
        proxy_url: str | None = None,
    ):
        """
        Initialize the Telegram notifier.

        Parameters
        ----------
        config : TelegramConfig
            Telegram configuration with bot token and formatting options.
        bot : Bot | None
            Existing bot instance to reuse, e.g. the one owned by the
            command-handling application. A new one is created if omitted.
        proxy_url : str | None
            Optional SOCKS proxy URL, only used when creating a bot.
        """
        self.config = config

        if bot is None:
            request = None
            if proxy_url:
                request = HTTPXRequest(proxy=proxy_url)
                logger.debug("Telegram using proxy: %s", proxy_url.split("@")[-1])
            bot = Bot(token=config.bot_token, request=request)
            self._owns_bot = True
        else:
            self._owns_bot = False

        self._bot = bot

    def format_item(self, item: FeedItem) -> str:
        """
        Format a feed item as a Telegram message.

        Parameters
        ----------
        item : FeedItem
            The item to format.

        Returns
        -------
        str
            Formatted message string, at most ``MAX_MESSAGE_LENGTH`` long.
        """
        message = self._render(item)

        # Shorten the raw text before escaping so markup is never cut
        for field in ("title", "feed_title"):
            text = getattr(item, field)
            if len(message) <= MAX_MESSAGE_LENGTH or not text:
                continue

            low, high = 0, len(text)
            while low < high:
                mid = (low + high + 1) // 2
                candidate = replace(item, **{field: text[:mid] + "..."})
                if len(self._render(candidate)) <= MAX_MESSAGE_LENGTH:
                    low = mid
                else:
                    high = mid - 1

            item = replace(item, **{field: text[:low] + "..."})
            message = self._render(item)

        return message

    def _render(self, item: FeedItem) -> str:
        if self.config.parse_mode == "HTML":
            return self._format_html(item)
        return self._format_markdown(item)

    def _format_html(self, item: FeedItem) -> str:
        parts = []

        if item.feed_title:
            parts.append(f"<b>[{html.escape(item.feed_title)}]</b>\n")

        title = html.escape(item.title) if item.title else "No title"
        if item.link:
            parts.append(f'<b><a href="{html.escape(item.link)}">{title}</a></b>')
        else:
            parts.append(f"<b>{title}</b>")

        if item.published:
            parts.append(f"\n<i>{html.escape(item.published)}</i>")

        if item.link:
            parts.append(f"\n{html.escape(item.link)}")

        return "".join(parts)

    def _format_markdown(self, item: FeedItem) -> str:
        parts = []

        if item.feed_title:
            parts.append(f"*\\[{self._escape_markdown(item.feed_title)}\\]*\n")

        title = self._escape_markdown(item.title) if item.title else "No title"
        if item.link:
            link = item.link.replace("\\", "\\\\").replace(")", "\\)")
            parts.append(f"[{title}]({link})")
        else:
            parts.append(f"*{title}*")

        if item.published:
            parts.append(f"\n_{self._escape_markdown(item.published)}_")

        return "".join(parts)

    def _escape_markdown(self, text: str) -> str:
        """
        Escape special MarkdownV2 characters.

        Parameters
        ----------
        text : str
            Text to escape.

        Returns
        -------
        str
            Escaped text safe for MarkdownV2.
        """
        escape_chars = r"\_*[]()~`>#+-=|{}.!"
        return "".join(f"\\{c}" if c in escape_chars else c for c in text)

    async def send_message(self, channel_id: str, text: str) -> None:
        """
        Send a message to a Telegram chat.

        Parameters
        ----------
        channel_id : str
            Target chat ID.
        text : str
            Message text to send.

        Raises
        ------
        DeliveryError
            If Telegram rejected the message or could not be reached.
        """
        parse_mode = (
            ParseMode.HTML if self.config.parse_mode == "HTML" else ParseMode.MARKDOWN_V2
        )

        try:
            await self._bot.send_message(
                chat_id=channel_id,
                text=text,
                parse_mode=parse_mode,
                link_preview_options=LinkPreviewOptions(
                    is_disabled=self.config.disable_web_page_preview
                ),
            )
        except TelegramError as e:
            raise DeliveryError(channel_id, str(e)) from e

    async def test_connection(self) -> bool:
        """
        Test the Telegram bot connection.

        Returns
        -------
        bool
            True if the connection is working.
        """
        try:
            me = await self._bot.get_me()
            logger.info("Connected to Telegram as @%s", me.username)
            return True
        except TelegramError as e:
            logger.error("Failed to connect to Telegram: %s", e)
            return False

    async def close(self) -> None:
        """Close the Telegram bot session if this notifier created it."""
        if self._owns_bot:
            await self._bot.shutdown()
        logger.debug("Telegram client closed")
