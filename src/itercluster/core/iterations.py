"""Immutable snapshots emitted by iterative clustering engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Literal, Optional

import pandas as pd

from .clusters import Cluster
from .items import Item, sorted_ids


StepKind = Literal["seed", "noise", "expand", "complete"]

STEP_SEED: StepKind = "seed"
STEP_NOISE: StepKind = "noise"
STEP_EXPAND: StepKind = "expand"
STEP_COMPLETE: StepKind = "complete"
STEP_KINDS: tuple[StepKind, ...] = (STEP_SEED, STEP_NOISE, STEP_EXPAND, STEP_COMPLETE)

STATUS_PENDING = "pending"
STATUS_CLUSTERED = "clustered"
STATUS_NOISE = "noise"

FRAME_COLUMNS = [
    "item_id",
    "x",
    "y",
    "status",
    "cluster_id",
    "cluster_name",
    "in_frontier",
]

CLUSTER_FRAME_COLUMNS = [
    "cluster_id",
    "name",
    "size",
    "member_ids",
    "centroid_x",
    "centroid_y",
]


@dataclass(frozen=True, slots=True)
class Iteration:
    """Snapshot of a clustering run after one step.

    Attributes
    ----------
    order:
        1-based position of the snapshot in its run.
    clusters:
        Clusters discovered so far, in discovery order.
    pending:
        Items that are neither clustered nor classified as noise yet.
    noise:
        Items classified as noise.
    kind:
        What the step did: seeded a cluster, classified noise, expanded the
        active cluster, or completed it without further changes.
    picked:
        Item drawn by a fresh cluster search during this step, if any.
    active_cluster_id:
        Cluster that the next step will keep expanding, if any.
    completed_cluster_id:
        Cluster that stopped growing during this step, if any.
    run_id:
        Token of the engine run that produced the snapshot.
    """

    order: int
    clusters: tuple[Cluster, ...] = ()
    pending: frozenset[Item] = frozenset()
    noise: frozenset[Item] = frozenset()
    kind: StepKind = STEP_SEED
    picked: Item | None = None
    active_cluster_id: str | None = None
    completed_cluster_id: str | None = None
    run_id: str | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.order < 1:
            raise ValueError("Iteration order must be at least 1")
        if self.kind not in STEP_KINDS:
            raise ValueError(f"Unknown iteration kind '{self.kind}'")

        object.__setattr__(self, "clusters", tuple(self.clusters))
        object.__setattr__(self, "pending", frozenset(self.pending))
        object.__setattr__(self, "noise", frozenset(self.noise))

    @property
    def members(self) -> frozenset[Item]:
        """All items that belong to some cluster."""

        return frozenset().union(*(cluster.members for cluster in self.clusters))

    @property
    def is_final(self) -> bool:
        """Whether nothing is left to process after this snapshot."""

        return not self.pending and self.active_cluster_id is None

    def get_cluster(self, cluster_id: str) -> Optional[Cluster]:
        for cluster in self.clusters:
            if cluster.id == cluster_id:
                return cluster
        return None

    def cluster_of(self, item: Item) -> Optional[Cluster]:
        for cluster in self.clusters:
            if item in cluster.members:
                return cluster
        return None

    def assignments(self) -> Dict[str, str | None]:
        """Map every clustered or noise item id to its cluster id (``None`` for noise)."""

        mapping: Dict[str, str | None] = {item.id: None for item in self.noise}
        for cluster in self.clusters:
            for item in cluster.members:
                mapping[item.id] = cluster.id
        return mapping

    def partition_violations(self, items: Iterable[Item]) -> list[str]:
        """Describe how this snapshot fails to partition ``items``.

        An empty list means every item sits in exactly one of pending, a
        cluster's members or noise.
        """

        expected = frozenset(items)
        problems: list[str] = []
        seen: dict[Item, str] = {}

        groups: list[tuple[str, frozenset[Item]]] = [
            (STATUS_PENDING, self.pending),
            (STATUS_NOISE, self.noise),
        ]
        groups.extend((f"cluster {cluster.id}", cluster.members) for cluster in self.clusters)

        for label, group in groups:
            for item in group:
                previous = seen.get(item)
                if previous is not None:
                    problems.append(f"item {item.id} is in both {previous} and {label}")
                else:
                    seen[item] = label

        missing = expected - seen.keys()
        if missing:
            problems.append("unaccounted items: " + ", ".join(sorted_ids(missing)))
        unknown = seen.keys() - expected
        if unknown:
            problems.append("unknown items: " + ", ".join(sorted_ids(unknown)))
        return problems

    def to_record(self) -> dict[str, object]:
        """Return a summary of the snapshot suitable for JSON output."""

        return {
            "order": self.order,
            "kind": self.kind,
            "picked_id": self.picked.id if self.picked is not None else None,
            "active_cluster_id": self.active_cluster_id,
            "completed_cluster_id": self.completed_cluster_id,
            "cluster_count": len(self.clusters),
            "clustered_count": sum(cluster.size for cluster in self.clusters),
            "pending_count": len(self.pending),
            "noise_count": len(self.noise),
        }

    def to_frame(self) -> pd.DataFrame:
        """Return one row per item with its status and cluster assignment."""

        rows: list[dict[str, object]] = []
        for cluster in self.clusters:
            for item in cluster.members:
                rows.append(
                    {
                        "item_id": item.id,
                        "x": item.x,
                        "y": item.y,
                        "status": STATUS_CLUSTERED,
                        "cluster_id": cluster.id,
                        "cluster_name": cluster.display_name,
                        "in_frontier": item in cluster.frontier,
                    }
                )
        for status, group in ((STATUS_NOISE, self.noise), (STATUS_PENDING, self.pending)):
            for item in group:
                rows.append(
                    {
                        "item_id": item.id,
                        "x": item.x,
                        "y": item.y,
                        "status": status,
                        "cluster_id": None,
                        "cluster_name": None,
                        "in_frontier": False,
                    }
                )

        if not rows:
            return pd.DataFrame(columns=FRAME_COLUMNS)

        frame = pd.DataFrame.from_records(rows, columns=FRAME_COLUMNS)
        return frame.sort_values("item_id", kind="stable").reset_index(drop=True)

    def clusters_frame(self) -> pd.DataFrame:
        """Return one row per cluster with its size, members and centroid."""

        if not self.clusters:
            return pd.DataFrame(columns=CLUSTER_FRAME_COLUMNS)

        return pd.DataFrame(
            {
                "cluster_id": [cluster.id for cluster in self.clusters],
                "name": [cluster.display_name for cluster in self.clusters],
                "size": [cluster.size for cluster in self.clusters],
                "member_ids": [";".join(sorted_ids(cluster.members)) for cluster in self.clusters],
                "centroid_x": [
                    sum(item.x for item in cluster.members) / cluster.size for cluster in self.clusters
                ],
                "centroid_y": [
                    sum(item.y for item in cluster.members) / cluster.size for cluster in self.clusters
                ],
            },
            columns=CLUSTER_FRAME_COLUMNS,
        )


__all__ = [
    "CLUSTER_FRAME_COLUMNS",
    "FRAME_COLUMNS",
    "Iteration",
    "STATUS_CLUSTERED",
    "STATUS_NOISE",
    "STATUS_PENDING",
    "STEP_COMPLETE",
    "STEP_EXPAND",
    "STEP_KINDS",
    "STEP_NOISE",
    "STEP_SEED",
    "StepKind",
]
