"""
Shared fixtures for RSS Bot tests.

Provides common test fixtures for use across all test modules.
"""

from datetime import timedelta
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from rss_bot.config import AppConfig, TelegramConfig
from rss_bot.entry import FeedItem
from rss_bot.registry import SubscriptionRegistry


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.yaml"


@pytest.fixture
def sample_rss_content(fixtures_dir: Path) -> str:
    """Return contents of sample RSS feed."""
    return (fixtures_dir / "sample_rss.xml").read_text()


@pytest.fixture
def sample_atom_content(fixtures_dir: Path) -> str:
    """Return contents of sample Atom feed."""
    return (fixtures_dir / "sample_atom.xml").read_text()


@pytest.fixture
def empty_feed_content(fixtures_dir: Path) -> str:
    """Return contents of a valid feed without items."""
    return (fixtures_dir / "empty_feed.xml").read_text()


@pytest.fixture
def sample_item() -> FeedItem:
    """
    Create a sample feed item for testing.

    Returns
    -------
    FeedItem
        A fully populated item instance.
    """
    return FeedItem(
        title="Test Entry Title",
        link="https://example.com/test-entry",
        guid="https://example.com/test-entry",
        published="Mon, 01 Jan 2024 12:00:00 GMT",
        author="Test Author",
        summary="This is the test entry content.",
        feed_title="Test Feed",
        feed_url="https://example.com/feed.xml",
    )


@pytest.fixture
def registry() -> SubscriptionRegistry:
    """Create an empty registry with a one-minute poll interval."""
    return SubscriptionRegistry(timedelta(minutes=1))


@pytest.fixture
def minimal_telegram_config() -> TelegramConfig:
    """Create a minimal valid Telegram configuration."""
    return TelegramConfig(bot_token="1234567890:ABCdefGHIjklMNOpqrsTUVwxyz")


@pytest.fixture
def minimal_config_dict() -> dict[str, Any]:
    """
    Create a minimal valid configuration dictionary.

    Returns
    -------
    dict
        Configuration dictionary that can be used to create AppConfig.
    """
    return {
        "telegram": {
            "bot_token": "1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
        },
    }


@pytest.fixture
def minimal_app_config(minimal_telegram_config: TelegramConfig) -> AppConfig:
    """Create a minimal valid app configuration."""
    return AppConfig(telegram=minimal_telegram_config)


@pytest.fixture
def mock_notifier() -> MagicMock:
    """
    Create a mock notifier.

    Returns
    -------
    MagicMock
        A notifier whose sends succeed and whose formatting returns the title.
    """
    notifier = MagicMock()
    notifier.format_item = MagicMock(side_effect=lambda item: f"{item.title}\n{item.link}")
    notifier.send_message = AsyncMock()
    notifier.test_connection = AsyncMock(return_value=True)
    notifier.close = AsyncMock()
    return notifier


@pytest.fixture
def mock_telegram_bot() -> MagicMock:
    """
    Create a mock Telegram bot.

    Returns
    -------
    MagicMock
        A mock Bot instance with common methods mocked.
    """
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.get_me = AsyncMock(return_value=MagicMock(username="test_bot"))
    bot.set_my_commands = AsyncMock()
    bot.shutdown = AsyncMock()
    return bot


@pytest.fixture
def feedparser_entry() -> dict[str, Any]:
    """
    Create a sample feedparser entry dictionary.

    Returns
    -------
    dict
        A dictionary mimicking feedparser entry structure.
    """
    return {
        "title": "Test Entry",
        "link": "https://example.com/entry",
        "id": "https://example.com/entry",
        "summary": "This is a test summary",
        "content": [{"value": "This is the full content"}],
        "author": "Test Author",
        "published": "2024-01-01T12:00:00Z",
    }
