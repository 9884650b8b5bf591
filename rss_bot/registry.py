"""
Subscription registry.

Keeps the per-channel list of subscribed feed URLs and the process-wide
poll interval behind a reader/writer lock.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta

from rss_bot.duration import InvalidDurationError, parse_duration

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = timedelta(minutes=30)

NO_SUBSCRIPTIONS_MESSAGE = "No RSS feeds subscribed."


class ReadWriteLock:
    """
    Reader/writer lock built on a condition variable.

    Any number of readers may hold the lock at once; a writer holds it
    exclusively. Waiting writers block new readers so writes are not starved.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the lock shared for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold the lock exclusively for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class SubscriptionRegistry:
    """
    In-memory store of feed subscriptions keyed by channel.

    One instance is created at startup and shared by the command handler
    and the scheduler. Every method returns without awaiting and never
    performs I/O while the lock is held.
    """

    def __init__(self, poll_interval: timedelta = DEFAULT_POLL_INTERVAL):
        """
        Initialize an empty registry.

        Parameters
        ----------
        poll_interval : timedelta
            Initial interval between scheduler ticks.
        """
        if poll_interval <= timedelta(0):
            raise InvalidDurationError("poll interval must be positive")

        self._lock = ReadWriteLock()
        self._feeds: dict[str, list[str]] = {}
        self._poll_interval = poll_interval

    def add_subscription(self, channel_id: str, feed_url: str) -> bool:
        """
        Subscribe a channel to a feed URL.

        Parameters
        ----------
        channel_id : str
            Channel to subscribe.
        feed_url : str
            URL of the feed.

        Returns
        -------
        bool
            True if the URL was added, False if it was already subscribed.
        """
        with self._lock.write():
            feeds = self._feeds.setdefault(channel_id, [])
            if feed_url in feeds:
                return False
            feeds.append(feed_url)

        logger.info("Channel %s subscribed to %s", channel_id, feed_url)
        return True

    def remove_subscription(self, channel_id: str, feed_url: str) -> bool:
        """
        Unsubscribe a channel from a feed URL.

        Removing a URL that is not subscribed is a no-op.

        Returns
        -------
        bool
            True if at least one entry was removed.
        """
        with self._lock.write():
            feeds = self._feeds.get(channel_id, [])
            remaining = [url for url in feeds if url != feed_url]
            self._feeds[channel_id] = remaining
            removed = len(remaining) != len(feeds)

        if removed:
            logger.info("Channel %s unsubscribed from %s", channel_id, feed_url)
        return removed

    def list_subscriptions(self, channel_id: str) -> str:
        """Return a human-readable summary of a channel's subscriptions."""
        with self._lock.read():
            feeds = list(self._feeds.get(channel_id, []))

        if not feeds:
            return NO_SUBSCRIPTIONS_MESSAGE
        return "Subscribed feeds:\n" + "\n".join(feeds)

    def has_subscription(self, channel_id: str, feed_url: str) -> bool:
        """Return True if the channel is subscribed to the URL."""
        with self._lock.read():
            return feed_url in self._feeds.get(channel_id, ())

    def get_subscriptions(self, channel_id: str) -> list[str]:
        """Return a copy of the channel's URLs in subscription order."""
        with self._lock.read():
            return list(self._feeds.get(channel_id, []))

    def channels(self) -> list[str]:
        """Snapshot the channels that have at least one subscription."""
        with self._lock.read():
            return [channel for channel, feeds in self._feeds.items() if feeds]

    def subscription_count(self) -> int:
        """Return the total number of subscriptions across all channels."""
        with self._lock.read():
            return sum(len(feeds) for feeds in self._feeds.values())

    @property
    def poll_interval(self) -> timedelta:
        """Current interval between scheduler ticks."""
        with self._lock.read():
            return self._poll_interval

    def set_poll_interval(self, value: str) -> timedelta:
        """
        Replace the poll interval from a duration string.

        Parameters
        ----------
        value : str
            Duration such as ``10m`` or ``1h30m``.

        Returns
        -------
        timedelta
            The new interval.

        Raises
        ------
        InvalidDurationError
            If the string is not a valid, strictly positive duration. The
            current interval is left unchanged.
        """
        interval = parse_duration(value)
        if interval <= timedelta(0):
            raise InvalidDurationError(f"duration must be positive, got {value!r}")

        with self._lock.write():
            self._poll_interval = interval

        logger.info("Poll interval set to %s", interval)
        return interval
