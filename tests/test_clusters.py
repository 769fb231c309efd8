import dataclasses

import pytest

from itercluster.core import Cluster, Item


A = Item("A", 0.0, 0.0)
B = Item("B", 1.0, 0.0)
C = Item("C", 2.0, 0.0)
D = Item("D", 3.0, 0.0)


def test_seeded_cluster_uses_neighbours_as_frontier():
    cluster = Cluster.seeded("cluster-001", B, [A, C], name="Cluster 1")

    assert cluster.members == frozenset({A, B, C})
    assert cluster.frontier == frozenset({A, C})
    assert cluster.size == 3
    assert len(cluster) == 3
    assert B in cluster
    assert D not in cluster
    assert cluster.display_name == "Cluster 1"


def test_grow_returns_new_cluster_and_replaces_frontier():
    original = Cluster.seeded("cluster-001", A, [B])

    grown = original.grow([C])

    assert grown is not original
    assert original.members == frozenset({A, B})
    assert original.frontier == frozenset({B})
    assert grown.members == frozenset({A, B, C})
    assert grown.frontier == frozenset({C})
    assert grown.id == original.id


def test_grow_keeps_carried_frontier_items():
    cluster = Cluster.seeded("cluster-001", A, [B, C])

    grown = cluster.grow([D], carried=[C])

    assert grown.frontier == frozenset({C, D})
    assert grown.members == frozenset({A, B, C, D})


def test_frontier_must_be_subset_of_members():
    with pytest.raises(ValueError, match="frontier contains non-members: D"):
        Cluster(id="cluster-001", members=frozenset({A}), frontier=frozenset({D}))

    with pytest.raises(ValueError):
        Cluster(id="", members=frozenset({A}))


def test_cluster_is_frozen_and_name_does_not_affect_equality():
    cluster = Cluster.seeded("cluster-001", A, [B], name="First")

    with pytest.raises(dataclasses.FrozenInstanceError):
        cluster.members = frozenset()  # type: ignore[misc]

    assert cluster == Cluster.seeded("cluster-001", A, [B], name="Renamed")
    assert Cluster("cluster-002", frozenset({A})).display_name == "cluster-002"


def test_cluster_to_record_lists_sorted_identifiers():
    cluster = Cluster.seeded("cluster-007", C, [A, B], name="Cluster 7")

    assert cluster.to_record() == {
        "cluster_id": "cluster-007",
        "name": "Cluster 7",
        "size": 3,
        "member_ids": ["A", "B", "C"],
        "frontier_ids": ["A", "B"],
    }
