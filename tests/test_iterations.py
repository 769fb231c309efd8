from __future__ import annotations

import pandas as pd
import pytest

from itercluster.core import STEP_EXPAND, STEP_NOISE, Cluster, Item, Iteration
from itercluster.core.iterations import CLUSTER_FRAME_COLUMNS, FRAME_COLUMNS


A = Item("A", 0.0, 0.0)
B = Item("B", 1.0, 0.0)
C = Item("C", 2.0, 3.0)
D = Item("D", 10.0, 10.0)
E = Item("E", 20.0, 20.0)


def _snapshot(**overrides) -> Iteration:
    values = dict(
        order=3,
        clusters=(Cluster.seeded("cluster-001", A, [B, C], name="Cluster 1"),),
        pending=frozenset({E}),
        noise=frozenset({D}),
        kind=STEP_EXPAND,
        active_cluster_id="cluster-001",
    )
    values.update(overrides)
    return Iteration(**values)


def test_iteration_validates_order_and_kind():
    with pytest.raises(ValueError):
        Iteration(order=0)

    with pytest.raises(ValueError):
        Iteration(order=1, kind="merge")  # type: ignore[arg-type]


def test_iteration_lookups():
    iteration = _snapshot()

    assert iteration.members == frozenset({A, B, C})
    assert iteration.get_cluster("cluster-001").size == 3
    assert iteration.get_cluster("cluster-999") is None
    assert iteration.cluster_of(B).id == "cluster-001"
    assert iteration.cluster_of(D) is None
    assert iteration.assignments() == {
        "A": "cluster-001",
        "B": "cluster-001",
        "C": "cluster-001",
        "D": None,
    }


def test_is_final_requires_no_pending_and_no_active_cluster():
    assert not _snapshot().is_final
    assert not _snapshot(pending=frozenset()).is_final
    assert _snapshot(pending=frozenset(), noise=frozenset({D, E}), active_cluster_id=None).is_final


def test_partition_violations_reports_overlap_missing_and_unknown_items():
    items = [A, B, C, D, E]
    assert _snapshot().partition_violations(items) == []

    overlapping = _snapshot(noise=frozenset({D, B}))
    problems = overlapping.partition_violations(items)
    assert problems == ["item B is in both noise and cluster cluster-001"]

    incomplete = _snapshot(pending=frozenset())
    assert incomplete.partition_violations(items) == ["unaccounted items: E"]

    foreign = Item("Z", 0.0, 0.0)
    assert _snapshot().partition_violations([A, B, C, D]) == ["unknown items: E"]
    assert _snapshot().partition_violations([*items, foreign]) == ["unaccounted items: Z"]


def test_to_record_counts_each_group():
    record = _snapshot(kind=STEP_NOISE, picked=D).to_record()

    assert record == {
        "order": 3,
        "kind": "noise",
        "picked_id": "D",
        "active_cluster_id": "cluster-001",
        "completed_cluster_id": None,
        "cluster_count": 1,
        "clustered_count": 3,
        "pending_count": 1,
        "noise_count": 1,
    }


def test_to_frame_lists_every_item_sorted_by_identifier():
    frame = _snapshot().to_frame()

    assert list(frame.columns) == FRAME_COLUMNS
    assert frame["item_id"].tolist() == ["A", "B", "C", "D", "E"]
    assert frame["status"].tolist() == ["clustered", "clustered", "clustered", "noise", "pending"]
    assert frame["cluster_id"].tolist()[:3] == ["cluster-001"] * 3
    assert pd.isna(frame["cluster_id"].iloc[3])
    assert frame["cluster_name"].iloc[0] == "Cluster 1"
    assert frame["in_frontier"].tolist() == [False, True, True, False, False]


def test_to_frame_of_empty_snapshot_keeps_columns():
    frame = Iteration(order=1).to_frame()

    assert frame.empty
    assert list(frame.columns) == FRAME_COLUMNS


def test_clusters_frame_reports_centroids():
    iteration = _snapshot(
        clusters=(
            Cluster.seeded("cluster-001", A, [B, C], name="Cluster 1"),
            Cluster.seeded("cluster-002", D, [E]),
        )
    )

    frame = iteration.clusters_frame()

    assert list(frame.columns) == CLUSTER_FRAME_COLUMNS
    assert frame["cluster_id"].tolist() == ["cluster-001", "cluster-002"]
    assert frame["name"].tolist() == ["Cluster 1", "cluster-002"]
    assert frame["size"].tolist() == [3, 2]
    assert frame["member_ids"].tolist() == ["A;B;C", "D;E"]
    assert frame.loc[0, "centroid_x"] == pytest.approx(1.0)
    assert frame.loc[0, "centroid_y"] == pytest.approx(1.0)
    assert frame.loc[1, "centroid_x"] == pytest.approx(15.0)

    empty = Iteration(order=1).clusters_frame()
    assert isinstance(empty, pd.DataFrame)
    assert empty.empty
