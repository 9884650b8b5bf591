"""
Delivery of discovered feed items to their channels.
"""

import logging

from rss_bot.entry import FeedItem
from rss_bot.notifier import DeliveryError, Notifier

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Formats items and hands them to the notifier.

    Delivery is fire-and-forget: failures are logged and never retried or
    raised to the caller. By default every item is sent. When
    ``skip_unchanged`` is set, an item equal to the last one delivered to
    the same channel is not sent again.
    """

    def __init__(self, notifier: Notifier, skip_unchanged: bool = False):
        self.notifier = notifier
        self.skip_unchanged = skip_unchanged
        self._last_delivered: dict[str, str] = {}

    def last_delivered(self, channel_id: str) -> str | None:
        """Key of the last item delivered to a channel, if any."""
        return self._last_delivered.get(channel_id)

    async def notify(self, channel_id: str, item: FeedItem) -> bool:
        """
        Send an item to a channel.

        Parameters
        ----------
        channel_id : str
            Destination channel.
        item : FeedItem
            The item to announce.

        Returns
        -------
        bool
            True if a message was delivered.
        """
        key = item.key
        if self.skip_unchanged and key and self._last_delivered.get(channel_id) == key:
            logger.debug("Item unchanged for channel %s, not resending", channel_id)
            return False

        text = self.notifier.format_item(item)

        try:
            await self.notifier.send_message(channel_id, text)
        except DeliveryError as e:
            logger.error("Failed to notify channel %s: %s", channel_id, e.reason)
            return False

        if key:
            self._last_delivered[channel_id] = key
        logger.info("Sent '%s' to channel %s", item.title[:50], channel_id)
        return True
