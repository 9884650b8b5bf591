"""
RSS Bot - Subscribe Telegram chats to RSS feeds.

A Python bot that lets chat operators subscribe to RSS/Atom feeds with
``/rss`` commands and periodically posts the latest item of each
subscription to the chat.
"""

__version__ = "1.0.0"
