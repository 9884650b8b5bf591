"""
Latest-item lookup for a channel's subscriptions.
"""

import logging

from rss_bot.entry import FeedItem
from rss_bot.registry import SubscriptionRegistry
from rss_bot.rss_parser import FeedParser, FetchError

logger = logging.getLogger(__name__)


class NoItemsFoundError(LookupError):
    """Raised when none of a channel's feeds yielded an item."""

    def __init__(self, channel_id: str):
        super().__init__(f"No items found for any feed of channel {channel_id}")
        self.channel_id = channel_id


class FeedFetcher:
    """
    Finds the latest item for a channel.

    Feeds are tried in subscription order and the first feed that returns
    any item wins. Items are not compared across feeds.
    """

    def __init__(self, registry: SubscriptionRegistry, parser: FeedParser):
        self.registry = registry
        self.parser = parser

    async def fetch_latest(self, channel_id: str) -> FeedItem:
        """
        Return the first item of the first feed that yields one.

        Parameters
        ----------
        channel_id : str
            Channel whose subscriptions are checked.

        Returns
        -------
        FeedItem
            The feed's first item, taken as its most recent one.

        Raises
        ------
        NoItemsFoundError
            If every feed failed or was empty.
        """
        for url in self.registry.get_subscriptions(channel_id):
            try:
                items = await self.parser.fetch_feed(url)
            except FetchError as e:
                logger.warning("Skipping feed %s: %s", url, e.reason)
                continue

            if not items:
                logger.debug("Feed %s has no items", url)
                continue

            return items[0]

        raise NoItemsFoundError(channel_id)
