#!/usr/bin/env python3
"""
Reduce Task Executor
Folds the local frequency maps of every chunk task into the final global
and per-author maps
"""

import logging
import time
from typing import Iterable, Tuple

from chatstats.common.models import FrequencyMap, MembersFrequencyMap
from chatstats.worker.map_executor import ChunkResult

logger = logging.getLogger(__name__)


def merge_tokens_maps(dst: FrequencyMap, src: FrequencyMap) -> FrequencyMap:
    """
    Add every count of src into dst in place

    Args:
        dst: Accumulator map, mutated
        src: Map to fold in, left untouched

    Returns:
        dst, for chaining
    """
    for token, occurrences in src.items():
        dst[token] = dst.get(token, 0) + occurrences
    return dst


def merge_members_maps(dst: MembersFrequencyMap, src: MembersFrequencyMap) -> MembersFrequencyMap:
    """
    Fold per-author maps of src into dst in place

    An author absent from dst takes over src's sub-map as is (no copy), so src
    must not be reused after the merge.
    """
    for member, counts in src.items():
        mergee = dst.get(member)
        if mergee is None:
            dst[member] = counts
        else:
            merge_tokens_maps(mergee, counts)
    return dst


class ReduceExecutor:
    """Merges chunk results sequentially, after every chunk task has finished"""

    def __init__(self):
        self.tokens_map: FrequencyMap = {}
        self.members_tokens_map: MembersFrequencyMap = {}
        self.chunks_merged = 0

    def merge(self, result: ChunkResult):
        """Fold one chunk result into the accumulated maps"""
        merge_tokens_maps(self.tokens_map, result.tokens_map)
        merge_members_maps(self.members_tokens_map, result.members_tokens_map)
        self.chunks_merged += 1

    def execute(self, results: Iterable[ChunkResult]) -> Tuple[FrequencyMap, MembersFrequencyMap]:
        """
        Merge all chunk results in the given order

        Returns:
            (tokens_map, members_tokens_map) accumulated so far
        """
        start_time = time.time()
        for result in results:
            self.merge(result)

        execution_time = int((time.time() - start_time) * 1000)
        logger.debug(
            f"Reduce: Merged {self.chunks_merged} chunk results into {len(self.tokens_map)} "
            f"distinct tokens for {len(self.members_tokens_map)} authors in {execution_time}ms"
        )
        return self.tokens_map, self.members_tokens_map
