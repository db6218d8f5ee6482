#!/usr/bin/env python3
"""
Map Task Executor
Executes chunk aggregation tasks by walking a contiguous range of messages,
tokenizing every countable text entity and counting tokens globally and per author
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Sequence

from chatstats.common.errors import MissingAuthorError
from chatstats.common.models import FrequencyMap, MembersFrequencyMap, Message
from chatstats.common.text import is_countable_entity, is_countable_message, tokenize

logger = logging.getLogger(__name__)


@dataclass
class ChunkResult:
    """Local frequency maps produced by one chunk task"""
    task_id: int
    tokens_map: FrequencyMap = field(default_factory=dict)
    members_tokens_map: MembersFrequencyMap = field(default_factory=dict)
    messages_processed: int = 0
    messages_counted: int = 0
    tokens_counted: int = 0


class MapExecutor:
    """Executes a single chunk aggregation task"""

    def __init__(self, task_id: int, messages: Sequence[Message], start: int, end: int):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this chunk task
            messages: Full message sequence of the transcript (read only)
            start: Index of the first message of the chunk
            end: Index one past the last message of the chunk
        """
        self.task_id = task_id
        self.messages = messages
        self.start = start
        self.end = end

    def execute(self) -> ChunkResult:
        """
        Execute the chunk task

        Returns:
            ChunkResult with freshly allocated maps owned by the caller

        Raises:
            MissingAuthorError: If a regular message in the chunk has no author
        """
        start_time = time.time()
        logger.debug(f"Map task {self.task_id}: Processing messages [{self.start}, {self.end})")

        result = ChunkResult(task_id=self.task_id)
        tokens_map = result.tokens_map
        members_tokens_map = result.members_tokens_map

        for index in range(self.start, self.end):
            message = self.messages[index]
            result.messages_processed += 1
            if not is_countable_message(message):
                continue

            sender = message.sender
            if sender is None:
                raise MissingAuthorError(message.id)
            result.messages_counted += 1

            for entity in message.text_entities:
                if not is_countable_entity(entity):
                    continue
                for token in tokenize(entity.text):
                    tokens_map[token] = tokens_map.get(token, 0) + 1
                    member_map = members_tokens_map.get(sender)
                    if member_map is None:
                        members_tokens_map[sender] = {token: 1}
                    else:
                        member_map[token] = member_map.get(token, 0) + 1
                    result.tokens_counted += 1

        execution_time = int((time.time() - start_time) * 1000)
        logger.debug(
            f"Map task {self.task_id}: Counted {result.tokens_counted} tokens "
            f"({len(tokens_map)} distinct) from {result.messages_counted} messages in {execution_time}ms"
        )
        return result
