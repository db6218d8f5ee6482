#!/usr/bin/env python3
"""
Benchmarking script for the statistics pipeline.
Runs the gatherer over one transcript with several worker counts, checks that
every run produces the same report and collects performance metrics.
"""

import argparse
import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from chatstats.common.errors import ChatStatsError
from chatstats.common.models import Chat
from chatstats.coordinator.gatherer import StatisticsGatherer
from chatstats.coordinator.job_manager import TailPolicy
from chatstats.coordinator.metrics import MetricsCollector
from chatstats.tools.generate_transcript import generate_chat

logger = logging.getLogger(__name__)

# Configuration
RESULTS_DIR = Path("benchmark_results")
DEFAULT_WORKER_COUNTS = [1, 2, 4, 8]
DEFAULT_SYNTHETIC_MESSAGES = 20_000


def run_benchmark(chat: Chat, num_workers: int, run_number: int = 1,
                  tail_policy: TailPolicy = TailPolicy.DISTRIBUTE):
    """
    Run a single benchmark configuration.

    Returns:
        (result dict, ChatStatistics) of the run
    """
    print(f"  Workers: {num_workers} (run {run_number})")
    metrics_collector = MetricsCollector()
    gatherer = StatisticsGatherer(num_workers, tail_policy=tail_policy,
                                  metrics_collector=metrics_collector)
    statistics = gatherer.gather(chat)
    metrics = metrics_collector.get_metrics(gatherer.last_job.job_id)

    result = {
        "benchmark_name": f"workers_{num_workers}",
        "run_number": run_number,
        "timestamp": datetime.now().isoformat(),
        "num_workers": num_workers,
        "tail_policy": tail_policy.value,
        "num_messages": metrics.num_messages,
        "num_token_occurrences": metrics.num_token_occurrences,
        "num_distinct_tokens": metrics.num_distinct_tokens,
        "total_runtime_seconds": round(metrics.total_time_seconds, 4),
        "aggregate_seconds": round(metrics.aggregate_phase_time_seconds, 4),
        "merge_seconds": round(metrics.merge_phase_time_seconds, 4),
        "peak_rss_mb": round(metrics.peak_rss_bytes / 1024 / 1024, 2),
        "success": True,
    }
    print(f"    ✓ {result['total_runtime_seconds']:.3f}s "
          f"({result['aggregate_seconds']:.3f}s aggregate, {result['merge_seconds']:.3f}s merge)")
    return result, statistics


def run_suite(chat: Chat, worker_counts: Sequence[int], runs_per_benchmark: int = 1,
              tail_policy: TailPolicy = TailPolicy.DISTRIBUTE) -> List[dict]:
    """Run every worker count and flag runs whose report differs from the first one."""
    results = []
    baseline = None
    for num_workers in worker_counts:
        for run in range(1, runs_per_benchmark + 1):
            result, statistics = run_benchmark(chat, num_workers, run, tail_policy)
            if baseline is None:
                baseline = statistics
            result["matches_baseline"] = statistics == baseline
            if not result["matches_baseline"]:
                logger.warning(f"Report with {num_workers} workers differs from the first run")
            results.append(result)
    return results


def save_results(results: List[dict], results_dir: Path, timestamp: str):
    """Save results to JSON and CSV files."""
    results_dir.mkdir(parents=True, exist_ok=True)

    json_file = results_dir / f"benchmark_results_{timestamp}.json"
    with open(json_file, 'w') as f:
        json.dump(results, f, indent=2)
    print(f"\n✓ Results saved to: {json_file}")

    csv_file = results_dir / f"benchmark_results_{timestamp}.csv"
    if results:
        fieldnames = list(results[0].keys())
        with open(csv_file, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(results)
        print(f"✓ Results saved to: {csv_file}")

    return json_file, csv_file


def print_summary(results: List[dict]):
    """Print a summary table of results."""
    print(f"\n{'='*70}")
    print("BENCHMARK SUMMARY")
    print(f"{'='*70}")
    print(f"{'Benchmark':<20} {'Workers':>7} {'Runtime':>10} {'Peak RSS':>10} {'Same':>6}")
    print(f"{'-'*70}")

    for r in results:
        print(f"{r['benchmark_name']:<20} {r['num_workers']:>7} "
              f"{r['total_runtime_seconds']:>9.3f}s {r['peak_rss_mb']:>8.1f}MB "
              f"{'✓' if r['matches_baseline'] else '✗':>6}")

    print(f"{'='*70}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main benchmarking workflow."""
    parser = argparse.ArgumentParser(description="Benchmark the statistics pipeline")
    parser.add_argument("--input", help="Transcript to benchmark (default: synthetic transcript)")
    parser.add_argument("--messages", type=int, default=DEFAULT_SYNTHETIC_MESSAGES,
                        help="Size of the synthetic transcript")
    parser.add_argument("--workers", type=int, nargs="+", default=DEFAULT_WORKER_COUNTS)
    parser.add_argument("--runs", type=int, default=1, help="Runs per worker count")
    parser.add_argument("--tail-policy", default=TailPolicy.DISTRIBUTE.value,
                        choices=[p.value for p in TailPolicy])
    parser.add_argument("--results-dir", default=str(RESULTS_DIR))
    args = parser.parse_args(argv)

    print("=" * 70)
    print("chatstats Performance Benchmark Suite")
    print("=" * 70)

    try:
        if args.input:
            with open(args.input, 'rb') as f:
                chat = Chat.from_json(f.read())
        else:
            chat = Chat.from_dict(generate_chat(args.messages))
        print(f"Transcript: {len(chat.messages)} messages")

        results = run_suite(chat, args.workers, max(1, args.runs), TailPolicy(args.tail_policy))
    except (ChatStatsError, OSError) as e:
        print(f"❌ Benchmark failed: {e}")
        return 1

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    json_file, _ = save_results(results, Path(args.results_dir), timestamp)
    print_summary(results)
    print(f"\nGenerate plots: chatstats-plot {json_file}")
    return 0


if __name__ == "__main__":
    exit(main())
