"""
Main entry point for RSS Bot.

Starts the Telegram command listener and the polling scheduler on one
asyncio loop.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from urllib.parse import urlparse

import coloredlogs
import yaml
from pydantic import ValidationError
from telegram.error import TelegramError
from telegram.ext import Application, ApplicationBuilder
from telegram.request import HTTPXRequest

from rss_bot.commands import BOT_COMMANDS, CommandProcessor, register_commands
from rss_bot.config import TelegramConfig, load_config
from rss_bot.dispatcher import Dispatcher
from rss_bot.fetcher import FeedFetcher
from rss_bot.registry import SubscriptionRegistry
from rss_bot.rss_parser import FeedParser
from rss_bot.scheduler import Scheduler
from rss_bot.telegram import TelegramNotifier

logger = logging.getLogger(__name__)


class SessionStartError(RuntimeError):
    """Raised when the Telegram session cannot be established."""

    pass


def redact_proxy_url(proxy_url: str) -> str:
    """
    Redact credentials from a proxy URL for safe logging.

    Parameters
    ----------
    proxy_url : str
        The proxy URL potentially containing credentials.

    Returns
    -------
    str
        The proxy URL with password redacted.
    """
    try:
        parsed = urlparse(proxy_url)
        if parsed.password:
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            if parsed.username:
                netloc = f"{parsed.username}:****@{netloc}"
            return f"{parsed.scheme}://{netloc}{parsed.path}"
        return proxy_url
    except ValueError:
        return "<proxy url>"


def build_application(config: TelegramConfig, proxy_url: str | None = None) -> Application:
    """
    Create the python-telegram-bot application.

    Updates are processed concurrently so a slow command never holds up
    others.
    """
    builder = ApplicationBuilder().token(config.bot_token).concurrent_updates(True)
    if proxy_url:
        builder = builder.request(HTTPXRequest(proxy=proxy_url)).get_updates_request(
            HTTPXRequest(proxy=proxy_url)
        )
    return builder.build()


class RSSBot:
    """
    Main RSS bot application.

    Owns the subscription registry and wires the command handler, the
    fetcher, the dispatcher and the scheduler around it.
    """

    def __init__(self, config_path: str | Path | None = None):
        """
        Initialize the bot.

        Parameters
        ----------
        config_path : str | Path | None
            Path to the YAML configuration file. Without one, settings come
            from the environment.
        """
        self.config = load_config(config_path)
        self.registry = SubscriptionRegistry(self.config.defaults.poll_interval_delta)
        self.parser: FeedParser | None = None
        self.application: Application | None = None
        self.notifier: TelegramNotifier | None = None
        self.scheduler: Scheduler | None = None
        self.commands: CommandProcessor | None = None
        self._running = False

    async def start(self) -> None:
        """
        Start the bot and run until stopped.

        Raises
        ------
        SessionStartError
            If the Telegram session could not be opened.
        """
        logger.info("Starting RSS Bot")
        defaults = self.config.defaults

        if defaults.proxy:
            logger.info("Using proxy: %s", redact_proxy_url(defaults.proxy))

        self.parser = FeedParser(
            timeout=defaults.request_timeout,
            user_agent=defaults.user_agent,
            proxy_url=defaults.proxy,
        )

        self.application = build_application(self.config.telegram, defaults.proxy)
        self.notifier = TelegramNotifier(self.config.telegram, bot=self.application.bot)

        self.scheduler = Scheduler(
            self.registry,
            FeedFetcher(self.registry, self.parser),
            Dispatcher(self.notifier, skip_unchanged=defaults.skip_unchanged),
            max_concurrent_channels=defaults.max_concurrent_channels,
            run_immediately=defaults.run_immediately,
        )

        self.commands = CommandProcessor(
            self.registry, on_interval_change=self.scheduler.reschedule
        )
        register_commands(self.application, self.commands)

        await self._open_session()

        self._running = True
        task = self.scheduler.start()
        logger.info("RSS Bot started")

        try:
            await task
        except asyncio.CancelledError:
            logger.info("Scheduler task cancelled")

    async def _open_session(self) -> None:
        """Connect to Telegram and start receiving commands."""
        try:
            await self.application.initialize()
        except TelegramError as e:
            raise SessionStartError(f"Failed to initialize Telegram bot: {e}") from e

        if not await self.notifier.test_connection():
            raise SessionStartError("Failed to connect to Telegram")

        try:
            await self.application.bot.set_my_commands(BOT_COMMANDS)
        except TelegramError as e:
            logger.warning("Failed to register bot commands: %s", e)

        await self.application.start()
        await self.application.updater.start_polling(drop_pending_updates=True)

    async def stop(self) -> None:
        """Stop the bot gracefully."""
        logger.info("Stopping RSS Bot")
        self._running = False

        if self.scheduler:
            await self.scheduler.stop()

        if self.application:
            if self.application.updater and self.application.updater.running:
                await self.application.updater.stop()
            if self.application.running:
                await self.application.stop()
            await self.application.shutdown()

        if self.notifier:
            await self.notifier.close()
        if self.parser:
            await self.parser.close()

        logger.info("RSS Bot stopped")


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Telegram bot that posts updates from subscribed RSS feeds",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to configuration file (optional, defaults to environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        bot = RSSBot(args.config)
    except (FileNotFoundError, ValueError, ValidationError, yaml.YAMLError) as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.create_task(bot.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    exit_code = 0
    try:
        loop.run_until_complete(bot.start())
    except SessionStartError as e:
        logger.error("%s", e)
        exit_code = 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.run_until_complete(bot.stop())
        loop.close()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
