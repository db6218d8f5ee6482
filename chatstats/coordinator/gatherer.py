"""
Statistics gatherer, drives a complete statistics job:
partitions the transcript, fans chunk tasks out to a thread pool, waits for
all of them and merges their local maps into a ChatStatistics report.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

from chatstats.common.models import Chat, ChatStatistics, Message
from chatstats.coordinator.job_manager import (
    ChunkTask,
    Job,
    JobManager,
    TailPolicy,
    validate_num_workers,
)
from chatstats.coordinator.metrics import MetricsCollector
from chatstats.worker.map_executor import ChunkResult, MapExecutor
from chatstats.worker.reduce_executor import ReduceExecutor

logger = logging.getLogger(__name__)


class StatisticsGatherer:
    """Runs statistics jobs with a fixed number of workers."""

    def __init__(self, num_workers: int, tail_policy: TailPolicy = TailPolicy.DISTRIBUTE,
                 job_manager: Optional[JobManager] = None,
                 metrics_collector: Optional[MetricsCollector] = None):
        """
        Initialize the gatherer.

        Args:
            num_workers: Number of chunks and pool threads, at least 1
            tail_policy: Handling of messages left over by integer-division chunking
            job_manager: Job bookkeeping, a private one is created if omitted
            metrics_collector: Metrics sink, a private one is created if omitted

        Raises:
            ConfigurationError: If num_workers is not a positive integer
        """
        self.num_workers = validate_num_workers(num_workers)
        self.tail_policy = tail_policy
        self.job_manager = job_manager or JobManager()
        self.metrics_collector = metrics_collector or MetricsCollector()
        self.last_job: Optional[Job] = None

    def gather(self, chat: Chat) -> ChatStatistics:
        """
        Compute word-frequency statistics of a transcript.

        Args:
            chat: Transcript, only read during the job

        Returns:
            ChatStatistics report

        Raises:
            MissingAuthorError: If a regular message has no author
        """
        messages = chat.messages
        job = self.job_manager.create_job(chat.name, len(messages), self.num_workers, self.tail_policy)
        self.last_job = job
        logger.info(
            f"Job {job.job_id}: Gathering statistics of '{chat.name}' "
            f"({len(messages)} messages, {self.num_workers} workers)"
        )

        try:
            self.metrics_collector.start_job(job.job_id, self.num_workers, len(messages))
            tasks = self.job_manager.generate_chunk_tasks(job, messages)
            results = self._run_chunk_tasks(job, tasks, messages)

            self.metrics_collector.end_aggregate_phase(
                job.job_id,
                num_unassigned_messages=job.num_dropped_messages,
                num_counted_messages=sum(r.messages_counted for r in results),
                num_token_occurrences=sum(r.tokens_counted for r in results),
            )

            # every worker has finished, merging needs no synchronization
            self.metrics_collector.start_merge_phase(job.job_id)
            tokens_map, members_tokens_map = ReduceExecutor().execute(results)
            statistics = ChatStatistics.from_maps(tokens_map, members_tokens_map)
        except Exception as e:
            self.job_manager.mark_job_failed(job.job_id, str(e))
            raise

        self.metrics_collector.end_job(job.job_id, statistics.num_tokens,
                                       len(statistics.members_tokens_map))
        self.job_manager.mark_job_completed(job.job_id)
        logger.info(
            f"Job {job.job_id}: Completed with {statistics.num_tokens} distinct tokens "
            f"from {len(statistics.members_tokens_map)} authors"
        )
        return statistics

    def _run_chunk_tasks(self, job: Job, tasks: List[ChunkTask],
                         messages: Sequence[Message]) -> List[ChunkResult]:
        """Execute every chunk task on the pool and collect results as they complete."""
        results = []
        executor = ThreadPoolExecutor(max_workers=self.num_workers,
                                      thread_name_prefix=f"chatstats-{job.job_id}")
        try:
            future_to_task = {
                executor.submit(self._execute_task, job.job_id, task, messages): task
                for task in tasks
            }

            for future in as_completed(future_to_task):
                task = future_to_task[future]
                try:
                    results.append(future.result())
                except Exception as e:
                    self.job_manager.mark_task_failed(job.job_id, task.task_id, str(e))
                    raise
                self.job_manager.mark_task_completed(job.job_id, task.task_id)
        finally:
            # a failed task aborts the job, tasks not yet started are dropped
            executor.shutdown(wait=True, cancel_futures=True)

        return results

    def _execute_task(self, job_id: str, task: ChunkTask,
                      messages: Sequence[Message]) -> ChunkResult:
        self.job_manager.mark_task_running(job_id, task.task_id)
        executor = MapExecutor(task.task_id, messages, task.chunk.start, task.chunk.end)
        return executor.execute()


def gather_statistics(chat: Chat, num_workers: int,
                      tail_policy: TailPolicy = TailPolicy.DISTRIBUTE) -> ChatStatistics:
    """Compute statistics of a transcript with a one-off gatherer."""
    return StatisticsGatherer(num_workers, tail_policy).gather(chat)
