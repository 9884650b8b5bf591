"""
Protocol definition for notification backends.

Defines the interface the dispatcher uses to reach the chat platform.
"""

from typing import Protocol, runtime_checkable

from rss_bot.entry import FeedItem


class DeliveryError(Exception):
    """Raised when a message could not be delivered to a channel."""

    def __init__(self, channel_id: str, reason: str):
        super().__init__(f"Failed to deliver message to {channel_id}: {reason}")
        self.channel_id = channel_id
        self.reason = reason


@runtime_checkable
class Notifier(Protocol):
    """
    Protocol defining the interface for notification backends.

    Implementations must be safe to call concurrently for different
    channels.
    """

    def format_item(self, item: FeedItem) -> str:
        """
        Render a feed item as message text.

        Parameters
        ----------
        item : FeedItem
            The item to render.

        Returns
        -------
        str
            Message text ready to send.
        """
        ...

    async def send_message(self, channel_id: str, text: str) -> None:
        """
        Send a text message to a channel.

        Parameters
        ----------
        channel_id : str
            Destination channel.
        text : str
            Message text.

        Raises
        ------
        DeliveryError
            If the message could not be sent.
        """
        ...

    async def test_connection(self) -> bool:
        """
        Test the connection to the notification backend.

        Returns
        -------
        bool
            True if the connection is working and messages can be sent.
        """
        ...

    async def close(self) -> None:
        """Close the notifier and release any resources."""
        ...
