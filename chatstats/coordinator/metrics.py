"""
Performance metrics collection for statistics jobs.
"""

import json
import time
from dataclasses import asdict, dataclass
from typing import Dict, Optional

import psutil


@dataclass
class JobMetrics:
    """
    Metrics for a single statistics job execution.

    peak_rss_bytes is the largest resident set size seen at phase boundaries
    (job start, end of the aggregate phase, job end), not a continuously
    tracked high-water mark.
    """

    job_id: str
    start_time: float
    end_time: float
    aggregate_phase_start: float
    aggregate_phase_end: float
    merge_phase_start: float
    merge_phase_end: float
    num_workers: int
    num_messages: int
    num_unassigned_messages: int = 0
    num_counted_messages: int = 0
    num_token_occurrences: int = 0
    num_distinct_tokens: int = 0
    num_authors: int = 0
    start_rss_bytes: int = 0
    peak_rss_bytes: int = 0

    @property
    def total_time_seconds(self) -> float:
        """Total job execution time in seconds."""
        return self.end_time - self.start_time

    @property
    def aggregate_phase_time_seconds(self) -> float:
        """Aggregate phase execution time in seconds."""
        return self.aggregate_phase_end - self.aggregate_phase_start

    @property
    def merge_phase_time_seconds(self) -> float:
        """Merge phase execution time in seconds."""
        return self.merge_phase_end - self.merge_phase_start

    def to_dict(self) -> dict:
        """Convert metrics to dictionary, derived timings included."""
        data = asdict(self)
        data['total_time_seconds'] = round(self.total_time_seconds, 6)
        data['aggregate_phase_time_seconds'] = round(self.aggregate_phase_time_seconds, 6)
        data['merge_phase_time_seconds'] = round(self.merge_phase_time_seconds, 6)
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects and manages metrics for statistics jobs."""

    def __init__(self):
        self.job_metrics: Dict[str, JobMetrics] = {}
        self.process = psutil.Process()

    def get_memory_usage(self) -> int:
        """Get current resident memory usage in bytes."""
        return self.process.memory_info().rss

    def _sample_memory(self, job_id: str):
        metrics = self.job_metrics[job_id]
        metrics.peak_rss_bytes = max(metrics.peak_rss_bytes, self.get_memory_usage())

    def start_job(self, job_id: str, num_workers: int, num_messages: int):
        """Initialize metrics tracking for a new job; the aggregate phase starts now."""
        now = time.time()
        rss = self.get_memory_usage()
        self.job_metrics[job_id] = JobMetrics(
            job_id=job_id,
            start_time=now,
            end_time=0,
            aggregate_phase_start=now,
            aggregate_phase_end=0,
            merge_phase_start=0,
            merge_phase_end=0,
            num_workers=num_workers,
            num_messages=num_messages,
            start_rss_bytes=rss,
            peak_rss_bytes=rss
        )

    def end_aggregate_phase(self, job_id: str, num_unassigned_messages: int,
                            num_counted_messages: int, num_token_occurrences: int):
        """Mark the end of the aggregate phase and record what the workers saw."""
        if job_id in self.job_metrics:
            metrics = self.job_metrics[job_id]
            metrics.aggregate_phase_end = time.time()
            metrics.num_unassigned_messages = num_unassigned_messages
            metrics.num_counted_messages = num_counted_messages
            metrics.num_token_occurrences = num_token_occurrences
            self._sample_memory(job_id)

    def start_merge_phase(self, job_id: str):
        """Mark the start of the merge phase."""
        if job_id in self.job_metrics:
            self.job_metrics[job_id].merge_phase_start = time.time()

    def end_job(self, job_id: str, num_distinct_tokens: int, num_authors: int):
        """Mark job completion and record the size of the report."""
        if job_id in self.job_metrics:
            metrics = self.job_metrics[job_id]
            metrics.merge_phase_end = time.time()
            metrics.end_time = metrics.merge_phase_end
            metrics.num_distinct_tokens = num_distinct_tokens
            metrics.num_authors = num_authors
            self._sample_memory(job_id)

    def get_metrics(self, job_id: str) -> Optional[JobMetrics]:
        """Retrieve metrics for a specific job."""
        return self.job_metrics.get(job_id)
