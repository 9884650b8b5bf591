"""
Feed item model.

Normalizes feedparser entries into a small dataclass used by the
fetcher and the dispatcher.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class FeedItem:
    """
    A single item read from an RSS/Atom feed.

    Attributes
    ----------
    title : str
        Item title.
    link : str
        Item URL.
    guid : str
        Unique identifier for the item.
    published : str
        Publication (or last update) date string.
    author : str
        Item author name.
    summary : str
        Item content or summary.
    feed_title : str
        Title of the feed the item came from.
    feed_url : str
        URL of the feed the item came from.
    """

    title: str = ""
    link: str = ""
    guid: str = ""
    published: str = ""
    author: str = ""
    summary: str = ""
    feed_title: str = ""
    feed_url: str = ""

    @property
    def key(self) -> str:
        """Identity used to tell whether two items are the same."""
        return self.guid or self.link or self.title

    @classmethod
    def from_feedparser(
        cls, entry: Any, feed_title: str = "", feed_url: str = ""
    ) -> "FeedItem":
        """
        Create a FeedItem from a feedparser entry.

        Parameters
        ----------
        entry : Any
            A feedparser entry object.
        feed_title : str
            Title of the source feed.
        feed_url : str
            URL of the source feed.

        Returns
        -------
        FeedItem
            Normalized item instance.
        """
        # Prefer full content over summary
        summary = ""
        if entry.get("content"):
            summary = entry["content"][0].get("value", "")
        elif entry.get("summary"):
            summary = entry["summary"] or ""

        author = entry.get("author", "")
        if not author and entry.get("author_detail"):
            author = entry["author_detail"].get("name", "")

        return cls(
            title=entry.get("title", ""),
            link=entry.get("link", ""),
            guid=entry.get("id", "") or entry.get("link", ""),
            published=entry.get("published", "") or entry.get("updated", ""),
            author=author or "",
            summary=summary,
            feed_title=feed_title,
            feed_url=feed_url,
        )
