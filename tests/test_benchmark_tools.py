"""
Tests for the transcript generator, benchmark runner and plotting helpers
"""

import json
import os
from pathlib import Path

import pytest

from chatstats.common.models import Chat, MessageType
from chatstats.tools import benchmark, generate_transcript, plot_results
from chatstats.tools.generate_transcript import generate_chat


class TestGenerateTranscript:

    def test_same_seed_same_document(self):
        assert generate_chat(50, seed=1) == generate_chat(50, seed=1)

    def test_different_seed_different_document(self):
        assert generate_chat(50, seed=1) != generate_chat(50, seed=2)

    def test_document_decodes(self):
        chat = Chat.from_dict(generate_chat(200, num_authors=3, service_ratio=0.2))

        assert len(chat.messages) == 200
        assert [m.id for m in chat.messages] == list(range(1, 201))
        authors = {m.sender for m in chat.messages if m.type is MessageType.MESSAGE}
        assert authors <= {"Member 0", "Member 1", "Member 2"}
        assert any(m.type is MessageType.SERVICE for m in chat.messages)
        assert all(m.sender is None for m in chat.messages if m.type is MessageType.SERVICE)

    def test_generate_file(self, temp_dir):
        path = Path(temp_dir) / "chat.json"
        size = generate_transcript.generate_file(path, 20, seed=4)

        assert size == path.stat().st_size
        with open(path, encoding='utf-8') as f:
            assert json.load(f) == generate_chat(20, seed=4)


class TestBenchmark:

    def test_run_benchmark_result(self, synthetic_chat):
        result, statistics = benchmark.run_benchmark(synthetic_chat, 2)

        assert result["benchmark_name"] == "workers_2"
        assert result["num_workers"] == 2
        assert result["num_messages"] == len(synthetic_chat.messages)
        assert result["num_distinct_tokens"] == statistics.num_tokens
        assert result["success"] is True

    def test_run_suite_reports_match(self, synthetic_chat):
        results = benchmark.run_suite(synthetic_chat, [1, 2, 4], runs_per_benchmark=2)

        assert len(results) == 6
        assert all(r["matches_baseline"] for r in results)

    def test_save_results(self, synthetic_chat, temp_dir):
        results = benchmark.run_suite(synthetic_chat, [1, 3])
        json_file, csv_file = benchmark.save_results(results, Path(temp_dir), "20240101_000000")

        assert json_file.exists()
        assert csv_file.exists()
        with open(json_file) as f:
            assert len(json.load(f)) == 2
        with open(csv_file) as f:
            assert len(f.read().splitlines()) == 3

    def test_main_with_synthetic_transcript(self, temp_dir):
        exit_code = benchmark.main(["--messages", "120", "--workers", "1", "2",
                                    "--results-dir", temp_dir])

        assert exit_code == 0
        assert any(name.endswith(".json") for name in os.listdir(temp_dir))

    def test_main_missing_input(self, temp_dir):
        missing = os.path.join(temp_dir, "missing.json")
        assert benchmark.main(["--input", missing, "--results-dir", temp_dir]) == 1

    def test_main_input_not_utf8(self, temp_dir):
        path = os.path.join(temp_dir, "chat.json")
        with open(path, "wb") as f:
            f.write(b'{"name": "\xff", "messages": []}')
        assert benchmark.main(["--input", path, "--results-dir", temp_dir]) == 1


def _result(num_workers, runtime, matches=True):
    return {
        "num_workers": num_workers,
        "num_messages": 1000,
        "total_runtime_seconds": runtime,
        "aggregate_seconds": runtime * 0.8,
        "merge_seconds": runtime * 0.2,
        "peak_rss_mb": 50.0,
        "success": True,
        "matches_baseline": matches,
    }


class TestPlotResults:

    def test_aggregate_runs(self):
        aggregated = plot_results.aggregate_runs([
            _result(1, 4.0), _result(1, 2.0), _result(2, 1.5),
            dict(_result(4, 9.0), success=False),
        ])

        assert sorted(aggregated) == [1, 2]
        assert aggregated[1]["avg_runtime"] == pytest.approx(3.0)
        assert aggregated[1]["std_runtime"] == pytest.approx(1.0)
        assert aggregated[1]["num_runs"] == 2
        assert aggregated[2]["all_match_baseline"] is True

    def test_compute_speedups(self):
        aggregated = plot_results.aggregate_runs([_result(4, 1.0), _result(1, 4.0), _result(2, 2.0)])
        worker_counts, speedups = plot_results.compute_speedups(aggregated)

        assert worker_counts == [1, 2, 4]
        assert speedups == pytest.approx([1.0, 2.0, 4.0])

    def test_compute_speedups_empty(self):
        assert plot_results.compute_speedups({}) == ([], [])

    def test_main_writes_plots(self, temp_dir):
        results_file = os.path.join(temp_dir, "results.json")
        with open(results_file, "w") as f:
            json.dump([_result(1, 4.0), _result(2, 2.2, matches=False)], f)
        plots_dir = os.path.join(temp_dir, "plots")

        assert plot_results.main([results_file, plots_dir]) == 0

        assert os.path.exists(os.path.join(plots_dir, "1_worker_scaling.png"))
        assert os.path.exists(os.path.join(plots_dir, "2_speedup_analysis.png"))
        with open(os.path.join(plots_dir, "results_table.md")) as f:
            table = f.read()
        assert "NO" in table

    def test_main_without_arguments(self):
        assert plot_results.main([]) == 1

    def test_main_missing_file(self, temp_dir):
        assert plot_results.main([os.path.join(temp_dir, "nope.json")]) == 1
