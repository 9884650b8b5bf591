"""
Polling scheduler.

Wakes on the registry's poll interval, fetches the latest item for every
subscribed channel and hands it to the dispatcher.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from rss_bot.dispatcher import Dispatcher
from rss_bot.fetcher import FeedFetcher, NoItemsFoundError
from rss_bot.registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """
    Outcome of one scheduler tick.

    Attributes
    ----------
    channels : list[str]
        Channels polled during the tick.
    dispatched : list[str]
        Channels that received a notification.
    skipped : list[str]
        Channels with no item to send or whose item was not delivered.
    failed : list[str]
        Channels whose check raised an unexpected error.
    """

    channels: list[str] = field(default_factory=list)
    dispatched: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class Scheduler:
    """
    Recurring tick loop over all subscribed channels.

    Ticks never overlap. The interval is read from the registry before every
    wait, and :meth:`reschedule` wakes a pending wait so a changed interval
    applies without waiting out the old one. When a tick overruns the
    interval the next one starts right away; missed ticks are dropped.
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        fetcher: FeedFetcher,
        dispatcher: Dispatcher,
        max_concurrent_channels: int = 4,
        run_immediately: bool = False,
    ):
        """
        Initialize the scheduler.

        Parameters
        ----------
        registry : SubscriptionRegistry
            Source of channels and of the poll interval.
        fetcher : FeedFetcher
            Looks up the latest item for a channel.
        dispatcher : Dispatcher
            Delivers items to channels.
        max_concurrent_channels : int
            Maximum number of channels checked at the same time.
        run_immediately : bool
            If True, the first tick runs at start instead of one interval later.
        """
        self.registry = registry
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.max_concurrent_channels = max(1, max_concurrent_channels)
        self.run_immediately = run_immediately
        self._running = False
        self._task: asyncio.Task | None = None
        self._wakeup = asyncio.Event()
        self._tick_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> asyncio.Task:
        """
        Start the tick loop in a background task.

        Returns
        -------
        asyncio.Task
            The loop task.
        """
        if self._task is not None and not self._task.done():
            raise RuntimeError("Scheduler already started")

        self._running = True
        self._task = asyncio.create_task(self._run(), name="rss-scheduler")
        logger.info(
            "Scheduler started, polling every %s", self.registry.poll_interval
        )
        return self._task

    async def stop(self) -> None:
        """Stop the tick loop and wait for it to finish."""
        self._running = False
        self._wakeup.set()

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Scheduler stopped")

    def reschedule(self) -> None:
        """Re-read the poll interval now instead of after the current wait."""
        self._wakeup.set()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        last_start = loop.time()

        if self.run_immediately:
            await self._tick_safely()

        while self._running:
            if not await self._wait_until_due(last_start):
                break

            last_start = loop.time()
            await self._tick_safely()

            elapsed = loop.time() - last_start
            interval = self.registry.poll_interval.total_seconds()
            if elapsed > interval:
                logger.warning(
                    "Tick took %.1fs, longer than the %.1fs poll interval",
                    elapsed,
                    interval,
                )

    async def _wait_until_due(self, last_start: float) -> bool:
        """
        Sleep until one interval after ``last_start``.

        Returns
        -------
        bool
            False if the scheduler was stopped while waiting.
        """
        loop = asyncio.get_running_loop()

        while self._running:
            self._wakeup.clear()
            interval = self.registry.poll_interval.total_seconds()
            remaining = last_start + interval - loop.time()
            if remaining <= 0:
                return True

            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                return self._running

            logger.debug("Scheduler woken up, re-reading poll interval")

        return False

    async def _tick_safely(self) -> None:
        try:
            await self.run_tick()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Scheduler tick failed: %s", e, exc_info=True)

    async def run_tick(self) -> TickResult:
        """
        Run one fetch and dispatch cycle over every subscribed channel.

        Failures are contained per channel: one channel failing never stops
        the others.

        Returns
        -------
        TickResult
            Which channels were notified, skipped or failed.
        """
        async with self._tick_lock:
            result = TickResult(channels=self.registry.channels())
            if not result.channels:
                logger.debug("No subscriptions, nothing to poll")
                return result

            logger.info("Polling %d channel(s)", len(result.channels))
            semaphore = asyncio.Semaphore(self.max_concurrent_channels)

            async def check(channel_id: str) -> None:
                async with semaphore:
                    await self._check_channel(channel_id, result)

            await asyncio.gather(*(check(channel) for channel in result.channels))

            logger.info(
                "Tick finished: %d dispatched, %d skipped, %d failed",
                len(result.dispatched),
                len(result.skipped),
                len(result.failed),
            )
            return result

    async def _check_channel(self, channel_id: str, result: TickResult) -> None:
        try:
            item = await self.fetcher.fetch_latest(channel_id)
            delivered = await self.dispatcher.notify(channel_id, item)
        except NoItemsFoundError as e:
            logger.info("%s, skipping this tick", e)
            result.skipped.append(channel_id)
            return
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Error checking channel %s: %s", channel_id, e)
            result.failed.append(channel_id)
            return

        if delivered:
            result.dispatched.append(channel_id)
        else:
            result.skipped.append(channel_id)
