"""
Exceptions raised by the statistics pipeline and the transcript codec.
"""

from typing import Optional


class ChatStatsError(Exception):
    """Base class for all chatstats failures"""


class ConfigurationError(ChatStatsError, ValueError):
    """Raised when the pipeline is configured with an unusable value"""


class TranscriptFormatError(ChatStatsError, ValueError):
    """Raised when an exported transcript document cannot be decoded"""


class MissingAuthorError(ChatStatsError):
    """Raised when a regular message carries no author"""

    def __init__(self, message_id: Optional[int]):
        self.message_id = message_id
        super().__init__(f"Message {message_id} has no author")
