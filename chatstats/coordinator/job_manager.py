#!/usr/bin/env python3
"""
Job Manager for the statistics pipeline
Handles partitioning of the message list into chunk tasks, job state and progress tracking
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from chatstats.common.errors import ConfigurationError

logger = logging.getLogger(__name__)


class TailPolicy(Enum):
    """What happens to the messages left over by integer-division chunking"""
    DISTRIBUTE = "distribute"  # first (len % workers) chunks get one extra message
    DROP = "drop"              # leftover messages are not counted at all


class JobStatus(Enum):
    """Status of a statistics job"""
    PENDING = "pending"
    AGGREGATE_PHASE = "aggregate_phase"
    MERGE_PHASE = "merge_phase"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(Enum):
    """Status of individual chunk tasks"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ChunkRange:
    """Contiguous half-open range [start, end) of message indices"""
    task_id: int
    start: int
    end: int

    def __len__(self):
        return self.end - self.start


@dataclass
class ChunkTask:
    """A chunk of messages assigned to one worker"""
    chunk: ChunkRange
    status: TaskStatus = TaskStatus.PENDING
    error_message: str = ''

    @property
    def task_id(self) -> int:
        return self.chunk.task_id


@dataclass
class Job:
    """A complete statistics run over one transcript"""
    job_id: str
    chat_name: str
    num_messages: int
    num_workers: int
    tail_policy: TailPolicy
    status: JobStatus = JobStatus.PENDING
    tasks: List[ChunkTask] = field(default_factory=list)
    error_message: str = ''
    start_time: float = 0.0
    end_time: float = 0.0

    @property
    def num_assigned_messages(self) -> int:
        return sum(len(task.chunk) for task in self.tasks)

    @property
    def num_dropped_messages(self) -> int:
        if not self.tasks:
            return 0
        return self.num_messages - self.num_assigned_messages


def validate_num_workers(num_workers) -> int:
    """
    Check a worker count before it is used for chunking

    Raises:
        ConfigurationError: If num_workers is not a positive integer
    """
    if isinstance(num_workers, bool) or not isinstance(num_workers, int):
        raise ConfigurationError(f"Worker count must be an integer, got {num_workers!r}")
    if num_workers < 1:
        raise ConfigurationError(f"Worker count must be at least 1, got {num_workers}")
    return num_workers


def partition(messages: Sequence, num_workers: int,
              tail_policy: TailPolicy = TailPolicy.DISTRIBUTE) -> List[ChunkRange]:
    """
    Split a message sequence into exactly num_workers contiguous chunks

    Args:
        messages: Sequence being partitioned (only its length is used)
        num_workers: Number of chunks to produce, at least 1
        tail_policy: How the len % num_workers leftover messages are handled

    Returns:
        List of ChunkRange, ordered and non-overlapping

    Raises:
        ConfigurationError: If num_workers is not a positive integer
    """
    validate_num_workers(num_workers)

    num_messages = len(messages)
    chunk_size = num_messages // num_workers
    remainder = num_messages % num_workers

    chunks = []
    start = 0
    for task_id in range(num_workers):
        size = chunk_size
        if tail_policy is TailPolicy.DISTRIBUTE and task_id < remainder:
            size += 1
        chunks.append(ChunkRange(task_id=task_id, start=start, end=start + size))
        start += size

    if tail_policy is TailPolicy.DROP and remainder:
        logger.warning(
            f"Tail policy 'drop': last {remainder} of {num_messages} messages "
            f"are not assigned to any of the {num_workers} chunks"
        )

    return chunks


class JobManager:
    """Tracks statistics jobs and the state of their chunk tasks"""

    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.lock = threading.Lock()

    def create_job(self, chat_name: str, num_messages: int, num_workers: int,
                   tail_policy: TailPolicy = TailPolicy.DISTRIBUTE) -> Job:
        """Register a new job; the worker count is validated here"""
        validate_num_workers(num_workers)
        with self.lock:
            job = Job(
                job_id=uuid.uuid4().hex[:12],
                chat_name=chat_name,
                num_messages=num_messages,
                num_workers=num_workers,
                tail_policy=tail_policy,
                start_time=time.time()
            )
            self.jobs[job.job_id] = job
            return job

    def generate_chunk_tasks(self, job: Job, messages: Sequence) -> List[ChunkTask]:
        """Partition the messages into one task per worker"""
        chunks = partition(messages, job.num_workers, job.tail_policy)
        with self.lock:
            job.tasks = [ChunkTask(chunk=chunk) for chunk in chunks]
            job.status = JobStatus.AGGREGATE_PHASE
        logger.info(
            f"Job {job.job_id}: {len(chunks)} chunk tasks over {job.num_messages} messages "
            f"({job.num_dropped_messages} unassigned)"
        )
        return job.tasks

    def mark_task_running(self, job_id: str, task_id: int):
        self._set_task_status(job_id, task_id, TaskStatus.RUNNING)

    def mark_task_completed(self, job_id: str, task_id: int):
        """Mark chunk task as completed; the job enters the merge phase once all are done"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.tasks):
                job.tasks[task_id].status = TaskStatus.COMPLETED

                if all(t.status == TaskStatus.COMPLETED for t in job.tasks):
                    job.status = JobStatus.MERGE_PHASE

    def mark_task_failed(self, job_id: str, task_id: int, error_message: str):
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.tasks):
                job.tasks[task_id].status = TaskStatus.FAILED
                job.tasks[task_id].error_message = error_message

    def mark_job_completed(self, job_id: str):
        with self.lock:
            job = self.jobs.get(job_id)
            if job:
                job.status = JobStatus.COMPLETED
                job.end_time = time.time()

    def mark_job_failed(self, job_id: str, error_message: str):
        with self.lock:
            job = self.jobs.get(job_id)
            if job:
                job.status = JobStatus.FAILED
                job.error_message = error_message
                job.end_time = time.time()
        logger.error(f"Job {job_id} failed: {error_message}")

    def _set_task_status(self, job_id: str, task_id: int, status: TaskStatus):
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.tasks):
                job.tasks[task_id].status = status

    def get_job_status(self, job_id: str) -> Optional[Dict]:
        """Get current job status with progress"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            total_tasks = len(job.tasks)
            completed_tasks = sum(1 for t in job.tasks if t.status == TaskStatus.COMPLETED)
            progress = int((completed_tasks / total_tasks * 100)) if total_tasks > 0 else 0

            return {
                'status': job.status.value,
                'progress': progress,
                'tasks_completed': completed_tasks,
                'tasks_total': total_tasks,
                'messages_total': job.num_messages,
                'messages_unassigned': job.num_dropped_messages,
                'error_message': job.error_message
            }
