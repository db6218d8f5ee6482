"""
chatstats: word-frequency statistics for exported Telegram chats.
"""

__version__ = "0.1.0"
