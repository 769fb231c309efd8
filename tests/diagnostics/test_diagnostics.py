"""Unit tests for :mod:`itercluster.diagnostics`."""

from __future__ import annotations

import math

import pytest

from itercluster.core import Item
from itercluster.data import load_items
from itercluster.dbscan import DBScanAlgorithm
from itercluster.diagnostics import generate_qa_signals, summarize_distribution, summarize_run
from itercluster.fixtures import fixture_path


def _summary(**overrides):
    values = dict(
        iterations=5,
        total_items=10,
        cluster_count=2,
        clustered_items=8,
        noise_items=2,
        pending_items=0,
        noise_ratio=0.2,
        step_counts={"seed": 2, "noise": 2, "expand": 1, "complete": 0},
        cluster_sizes={"cluster-001": 6, "cluster-002": 2},
        size_distribution=summarize_distribution([6, 2]),
        fingerprint="abc",
    )
    values.update(overrides)
    return values


def test_summarize_distribution_handles_empty_and_quantiles() -> None:
    summary = summarize_distribution([1, 2, 3, 4, 5], quantiles=[1.0, 0.0, 0.5, 0.5])

    assert summary["count"] == 5
    assert summary["mean"] == pytest.approx(3.0)
    assert summary["variance"] == pytest.approx(2.0)
    assert summary["minimum"] == pytest.approx(1.0)
    assert summary["maximum"] == pytest.approx(5.0)
    assert list(summary["quantiles"]) == [0.0, 0.5, 1.0]
    assert summary["quantiles"][0.5] == pytest.approx(3.0)

    empty = summarize_distribution([])
    assert empty["count"] == 0
    assert math.isnan(empty["mean"])
    assert all(math.isnan(value) for value in empty["quantiles"].values())

    with pytest.raises(ValueError):
        summarize_distribution([1.0], quantiles=[1.5])


def test_summarize_run_on_fixture() -> None:
    engine = DBScanAlgorithm(load_items(fixture_path("two_blobs")), 1.0, 3, rng=1)

    summary = summarize_run(engine.iter_iterations())

    assert summary["iterations"] == engine.latest.order
    assert summary["total_items"] == 14
    assert summary["cluster_count"] == 2
    assert summary["clustered_items"] == 12
    assert summary["noise_items"] == 2
    assert summary["pending_items"] == 0
    assert summary["noise_ratio"] == pytest.approx(2 / 14)
    assert summary["step_counts"]["seed"] == 2
    assert summary["step_counts"]["noise"] == 2
    assert summary["step_counts"]["complete"] == 0
    assert sum(summary["step_counts"].values()) == summary["iterations"]
    assert summary["cluster_sizes"] == {"cluster-001": 6, "cluster-002": 6}
    assert summary["size_distribution"]["mean"] == pytest.approx(6.0)
    assert len(summary["fingerprint"]) == 64


def test_summarize_run_without_iterations() -> None:
    summary = summarize_run(DBScanAlgorithm([], 1.0, 2).iter_iterations())

    assert summary["iterations"] == 0
    assert summary["total_items"] == 0
    assert summary["fingerprint"] == ""
    assert generate_qa_signals(summary)["warnings"] == ["No items were clustered"]


def test_generate_qa_signals_flags_dominant_clusters() -> None:
    signals = generate_qa_signals(_summary(), dominance_threshold=0.5)

    assert signals["warnings"] == []
    assert signals["dominant_clusters"] == [{"cluster_id": "cluster-001", "share": 0.6, "size": 6}]


def test_generate_qa_signals_skips_dominance_for_single_cluster() -> None:
    summary = _summary(cluster_count=1, cluster_sizes={"cluster-001": 8})

    assert generate_qa_signals(summary)["dominant_clusters"] == []


def test_generate_qa_signals_warns_about_noise_and_pending() -> None:
    all_noise = _summary(
        cluster_count=0,
        clustered_items=0,
        noise_items=10,
        noise_ratio=1.0,
        cluster_sizes={},
    )
    assert generate_qa_signals(all_noise)["warnings"] == ["No clusters were formed; every item is noise"]

    noisy = _summary(noise_items=6, clustered_items=4, noise_ratio=0.6, cluster_sizes={"a": 2, "b": 2})
    warnings = generate_qa_signals(noisy, noise_warning_ratio=0.5)["warnings"]
    assert warnings == ["Noise ratio 0.60 is at or above 0.50"]

    partial = _summary(pending_items=3, noise_items=0, noise_ratio=0.0)
    assert generate_qa_signals(partial)["warnings"] == ["3 items are still pending; the run is incomplete"]


def test_generate_qa_signals_on_isolated_points() -> None:
    items = [Item("a", 0, 0), Item("b", 10, 0)]
    summary = summarize_run(DBScanAlgorithm(items, 1.0, 2, rng=0).iter_iterations())

    assert summary["step_counts"]["noise"] == 2
    assert generate_qa_signals(summary)["warnings"] == ["No clusters were formed; every item is noise"]
