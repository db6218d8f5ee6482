#!/usr/bin/env python3
"""
chatstats Client CLI
Reads an exported chat transcript, gathers word-frequency statistics and writes them as JSON
"""

import argparse
import json
import logging
import os
import sys
from typing import Optional, Sequence

from chatstats.common.errors import ChatStatsError, ConfigurationError
from chatstats.common.models import Chat, ChatStatistics
from chatstats.coordinator.gatherer import StatisticsGatherer
from chatstats.coordinator.job_manager import TailPolicy
from chatstats.coordinator.metrics import MetricsCollector

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configuration from environment
DEFAULT_OUTPUT = 'out.json'
DEFAULT_JOBS = os.getenv('CHATSTATS_JOBS')
DEFAULT_TAIL_POLICY = os.getenv('CHATSTATS_TAIL_POLICY', TailPolicy.DISTRIBUTE.value)


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes = int(seconds / 60)
    seconds = seconds % 60
    return f"{minutes}m {seconds:.1f}s"


def load_chat(path: str) -> Chat:
    """
    Read and decode a transcript file

    Raises:
        OSError: If the file cannot be read
        TranscriptFormatError: If the content is not UTF-8 JSON in the export layout
    """
    with open(path, 'rb') as f:
        content = f.read()
    return Chat.from_json(content)


def save_statistics(statistics: ChatStatistics, path: str):
    """Write the report as pretty-printed JSON"""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(statistics.to_dict(), f, indent=2, ensure_ascii=False)


def resolve_num_workers(jobs: Optional[str]) -> int:
    """Worker count from the command line or environment, CPU count when unset"""
    if jobs is None:
        return os.cpu_count() or 1
    try:
        return int(jobs)
    except ValueError:
        raise ConfigurationError(f"Worker count must be an integer, got '{jobs}'") from None


def resolve_tail_policy(value: str) -> TailPolicy:
    try:
        return TailPolicy(value)
    except ValueError:
        raise ConfigurationError(f"Unknown tail policy '{value}'") from None


def run(args) -> int:
    """Gather statistics for the parsed command line"""
    num_workers = resolve_num_workers(args.jobs)
    metrics_collector = MetricsCollector()
    gatherer = StatisticsGatherer(
        num_workers,
        tail_policy=resolve_tail_policy(args.tail_policy),
        metrics_collector=metrics_collector
    )

    logger.info(f"Reading transcript {args.file}")
    chat = load_chat(args.file)

    statistics = gatherer.gather(chat)
    save_statistics(statistics, args.output)

    metrics = metrics_collector.get_metrics(gatherer.last_job.job_id)
    if args.metrics:
        metrics.save_to_file(args.metrics)
        logger.info(f"Metrics written to {args.metrics}")

    print(f"✓ {statistics.num_tokens} distinct tokens from "
          f"{len(statistics.members_tokens_map)} authors written to {args.output} "
          f"in {format_duration(metrics.total_time_seconds)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='chatstats',
        description='Word-frequency statistics for an exported Telegram chat'
    )
    parser.add_argument('-f', '--file', required=True,
                        help='Exported chat transcript (JSON)')
    parser.add_argument('-o', '--output', default=DEFAULT_OUTPUT,
                        help=f'Where to write the statistics (default: {DEFAULT_OUTPUT})')
    parser.add_argument('-j', '--jobs', default=DEFAULT_JOBS,
                        help='Number of worker threads and chunks (default: CPU count, '
                             'or $CHATSTATS_JOBS)')
    parser.add_argument('--tail-policy', default=DEFAULT_TAIL_POLICY,
                        choices=[p.value for p in TailPolicy],
                        help='Handling of messages left over when the message count is not '
                             'a multiple of the worker count (default: distribute)')
    parser.add_argument('--metrics',
                        help='Optional path for a JSON file with job metrics')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        return run(args)
    except (ChatStatsError, OSError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
