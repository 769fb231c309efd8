"""Utilities for computing diagnostics over clustering runs."""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Sequence, TypedDict

import pandas as pd

from ..core.iterations import STEP_COMPLETE, STEP_EXPAND, STEP_NOISE, STEP_SEED, Iteration
from ..explain.trace import partition_fingerprint
from .writers import (
    DIAGNOSTICS_BASENAME,
    DIAGNOSTICS_VERSION,
    diagnostics_path,
    write_json,
    write_parquet,
)


class DistributionSummary(TypedDict):
    """Summary statistics for a single metric.

    Attributes
    ----------
    count:
        Number of observations used to compute the summary.
    mean:
        Arithmetic mean of the metric, or ``NaN`` when ``count == 0``.
    variance:
        Population variance (``ddof=0``), or ``NaN`` when ``count == 0``.
    minimum, maximum:
        Extremes of the metric, or ``NaN`` when ``count == 0``.
    quantiles:
        Mapping of requested quantile -> value.
    """

    count: int
    mean: float
    variance: float
    minimum: float
    maximum: float
    quantiles: Dict[float, float]


class RunSummary(TypedDict):
    """Headline numbers for a completed (or partial) clustering run."""

    iterations: int
    total_items: int
    cluster_count: int
    clustered_items: int
    noise_items: int
    pending_items: int
    noise_ratio: float
    step_counts: Dict[str, int]
    cluster_sizes: Dict[str, int]
    size_distribution: DistributionSummary
    fingerprint: str


class DominantClusterSignal(TypedDict):
    """Description of a cluster that holds a large share of the items."""

    cluster_id: str
    share: float
    size: int


class QASignals(TypedDict):
    """Quality assurance heuristics derived from a run summary."""

    dominant_clusters: List[DominantClusterSignal]
    warnings: List[str]


def summarize_distribution(
    values: Sequence[float],
    *,
    quantiles: Sequence[float] = (0.05, 0.5, 0.95),
) -> DistributionSummary:
    """Summarize a numeric sample (e.g. cluster sizes).

    Parameters
    ----------
    values:
        Observations to summarize.
    quantiles:
        Iterable of quantile probabilities in the inclusive interval ``[0, 1]``.
    """

    quantiles = tuple(sorted(dict.fromkeys(float(q) for q in quantiles)))
    for q in quantiles:
        if not 0.0 <= q <= 1.0:
            raise ValueError(f"Quantile {q} is outside the inclusive [0, 1] range")

    series = pd.Series(list(values), dtype=float)
    if series.empty:
        return DistributionSummary(
            count=0,
            mean=math.nan,
            variance=math.nan,
            minimum=math.nan,
            maximum=math.nan,
            quantiles={q: math.nan for q in quantiles},
        )

    return DistributionSummary(
        count=int(series.count()),
        mean=float(series.mean()),
        variance=float(series.var(ddof=0)),
        minimum=float(series.min()),
        maximum=float(series.max()),
        quantiles={q: float(series.quantile(q, interpolation="linear")) for q in quantiles},
    )


def summarize_run(iterations: Iterable[Iteration]) -> RunSummary:
    """Summarize a run from the snapshots it produced, in order.

    ``iterations`` is consumed once, so a live generator works. The final
    snapshot supplies the partition; earlier ones only contribute step counts.
    """

    step_counts = {kind: 0 for kind in (STEP_SEED, STEP_NOISE, STEP_EXPAND, STEP_COMPLETE)}
    final: Iteration | None = None
    for final in iterations:
        step_counts[final.kind] += 1

    if final is None:
        return RunSummary(
            iterations=0,
            total_items=0,
            cluster_count=0,
            clustered_items=0,
            noise_items=0,
            pending_items=0,
            noise_ratio=0.0,
            step_counts=step_counts,
            cluster_sizes={},
            size_distribution=summarize_distribution([]),
            fingerprint="",
        )

    cluster_sizes = {cluster.id: cluster.size for cluster in final.clusters}
    clustered = sum(cluster_sizes.values())
    total = clustered + len(final.noise) + len(final.pending)

    return RunSummary(
        iterations=final.order,
        total_items=total,
        cluster_count=len(final.clusters),
        clustered_items=clustered,
        noise_items=len(final.noise),
        pending_items=len(final.pending),
        noise_ratio=len(final.noise) / total if total else 0.0,
        step_counts=step_counts,
        cluster_sizes=cluster_sizes,
        size_distribution=summarize_distribution(list(cluster_sizes.values())),
        fingerprint=partition_fingerprint(final),
    )


def generate_qa_signals(
    summary: RunSummary,
    *,
    dominance_threshold: float = 0.5,
    noise_warning_ratio: float = 0.5,
) -> QASignals:
    """Compute heuristic QA signals for a run.

    Parameters
    ----------
    summary:
        Output of :func:`summarize_run`.
    dominance_threshold:
        Clusters whose share of all items meets or exceeds this threshold are
        flagged as dominant (often a sign that the distance threshold is too
        large).
    noise_warning_ratio:
        Noise ratio at or above which a warning is emitted (often a sign that
        the distance threshold is too small or ``min_points`` too large).
    """

    warnings: List[str] = []
    dominant: List[DominantClusterSignal] = []
    total = summary["total_items"]

    if total == 0:
        warnings.append("No items were clustered")
        return QASignals(dominant_clusters=dominant, warnings=warnings)

    if summary["pending_items"]:
        warnings.append(f"{summary['pending_items']} items are still pending; the run is incomplete")

    if summary["cluster_count"] == 0 and summary["noise_items"] == total:
        warnings.append("No clusters were formed; every item is noise")
    elif summary["noise_ratio"] >= noise_warning_ratio:
        warnings.append(f"Noise ratio {summary['noise_ratio']:.2f} is at or above {noise_warning_ratio:.2f}")

    if summary["cluster_count"] > 1:
        for cluster_id, size in summary["cluster_sizes"].items():
            share = size / total
            if share >= dominance_threshold:
                dominant.append(DominantClusterSignal(cluster_id=cluster_id, share=share, size=size))

    return QASignals(
        dominant_clusters=sorted(dominant, key=lambda signal: signal["share"], reverse=True),
        warnings=warnings,
    )


__all__ = [
    "DIAGNOSTICS_BASENAME",
    "DIAGNOSTICS_VERSION",
    "DistributionSummary",
    "DominantClusterSignal",
    "QASignals",
    "RunSummary",
    "diagnostics_path",
    "generate_qa_signals",
    "summarize_distribution",
    "summarize_run",
    "write_json",
    "write_parquet",
]
