#!/usr/bin/env python3
"""
Generate plots from benchmark results.
"""

import json
import sys
from collections import defaultdict
from pathlib import Path
from typing import Optional, Sequence

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

# Configuration
PLOTS_DIR = Path("benchmark_results/plots")


def load_results(json_file):
    """Load benchmark results from JSON file."""
    with open(json_file, 'r') as f:
        return json.load(f)


def aggregate_runs(results):
    """
    Aggregate multiple runs of the same worker count.
    Returns dict: num_workers -> {avg_runtime, std_runtime, ...}
    """
    by_workers = defaultdict(list)

    for r in results:
        if r['success']:
            by_workers[r['num_workers']].append(r)

    aggregated = {}
    for num_workers, runs in by_workers.items():
        runtimes = [r['total_runtime_seconds'] for r in runs]
        aggregate_times = [r['aggregate_seconds'] for r in runs]
        merge_times = [r['merge_seconds'] for r in runs]

        aggregated[num_workers] = {
            'num_workers': num_workers,
            'num_messages': runs[0]['num_messages'],
            'avg_runtime': float(np.mean(runtimes)),
            'std_runtime': float(np.std(runtimes)),
            'min_runtime': float(np.min(runtimes)),
            'max_runtime': float(np.max(runtimes)),
            'avg_aggregate': float(np.mean(aggregate_times)),
            'avg_merge': float(np.mean(merge_times)),
            'avg_peak_rss_mb': float(np.mean([r['peak_rss_mb'] for r in runs])),
            'all_match_baseline': all(r.get('matches_baseline', True) for r in runs),
            'num_runs': len(runs)
        }

    return aggregated


def compute_speedups(aggregated):
    """Speedup of every worker count relative to the smallest one, sorted by worker count."""
    worker_counts = sorted(aggregated)
    if not worker_counts:
        return [], []
    baseline = aggregated[worker_counts[0]]['avg_runtime']
    speedups = [baseline / aggregated[w]['avg_runtime'] if aggregated[w]['avg_runtime'] > 0 else 0.0
                for w in worker_counts]
    return worker_counts, speedups


def plot_worker_scaling(aggregated, output_file):
    """Plot runtime vs number of workers, split into aggregate and merge phases."""
    if not aggregated:
        print("⚠️  No worker scaling data found")
        return

    worker_counts = sorted(aggregated)
    runtimes = [aggregated[w]['avg_runtime'] for w in worker_counts]
    stds = [aggregated[w]['std_runtime'] for w in worker_counts]
    aggregates = [aggregated[w]['avg_aggregate'] for w in worker_counts]
    merges = [aggregated[w]['avg_merge'] for w in worker_counts]

    plt.figure(figsize=(10, 6))
    plt.errorbar(worker_counts, runtimes, yerr=stds, marker='o', capsize=5,
                 linewidth=2, markersize=8, label='Total')
    plt.plot(worker_counts, aggregates, marker='s', linestyle='--', label='Aggregate phase')
    plt.plot(worker_counts, merges, marker='^', linestyle=':', label='Merge phase')
    plt.xlabel('Number of Workers', fontsize=12)
    plt.ylabel('Runtime (seconds)', fontsize=12)
    plt.title(f"Statistics Runtime vs Workers\n({aggregated[worker_counts[0]]['num_messages']} messages)",
              fontsize=14, fontweight='bold')
    plt.xticks(worker_counts)
    plt.legend(fontsize=11)
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close()


def plot_speedup(aggregated, output_file):
    """Plot speedup against ideal linear speedup."""
    worker_counts, speedups = compute_speedups(aggregated)
    if len(worker_counts) < 2:
        print("⚠️  Insufficient data for speedup plot")
        return

    ideal_speedup = [w / worker_counts[0] for w in worker_counts]

    plt.figure(figsize=(10, 6))
    plt.plot(worker_counts, speedups, marker='o', linewidth=2, markersize=8,
             label='Actual Speedup', color='blue')
    plt.plot(worker_counts, ideal_speedup, linestyle='--', linewidth=2,
             label='Ideal (Linear) Speedup', color='gray', alpha=0.7)
    plt.xlabel('Number of Workers', fontsize=12)
    plt.ylabel('Speedup', fontsize=12)
    plt.title('Speedup vs Ideal Linear Speedup', fontsize=14, fontweight='bold')
    plt.xticks(worker_counts)
    plt.legend(fontsize=11)
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close()


def generate_summary_table(aggregated, output_file):
    """Generate a markdown table summarizing all results."""
    lines = [
        "# Benchmark Results Summary\n",
        "| Workers | Runs | Avg Runtime (s) | Std Dev | Aggregate (s) | Merge (s) | Peak RSS (MB) | Same Report |",
        "|---------|------|-----------------|---------|---------------|-----------|---------------|-------------|"
    ]

    for num_workers in sorted(aggregated):
        v = aggregated[num_workers]
        lines.append(
            f"| {num_workers:>7} | {v['num_runs']:>4} | {v['avg_runtime']:>15.3f} | "
            f"{v['std_runtime']:>7.3f} | {v['avg_aggregate']:>13.3f} | {v['avg_merge']:>9.3f} | "
            f"{v['avg_peak_rss_mb']:>13.1f} | {'yes' if v['all_match_baseline'] else 'NO':>11} |"
        )

    with open(output_file, 'w') as f:
        f.write('\n'.join(lines) + '\n')

    print(f"✓ Saved: {output_file}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Generate all plots from benchmark results."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Usage: chatstats-plot <results.json> [plots_dir]")
        return 1

    json_file = Path(args[0])
    plots_dir = Path(args[1]) if len(args) > 1 else PLOTS_DIR

    if not json_file.exists():
        print(f"❌ File not found: {json_file}")
        return 1

    print(f"Loading results from: {json_file}")
    results = load_results(json_file)
    aggregated = aggregate_runs(results)
    print(f"✓ Aggregated {len(results)} runs into {len(aggregated)} worker counts")

    plots_dir.mkdir(parents=True, exist_ok=True)
    plot_worker_scaling(aggregated, plots_dir / "1_worker_scaling.png")
    plot_speedup(aggregated, plots_dir / "2_speedup_analysis.png")
    generate_summary_table(aggregated, plots_dir / "results_table.md")

    print(f"\nAll plots saved to: {plots_dir}/")
    return 0


if __name__ == "__main__":
    exit(main())
