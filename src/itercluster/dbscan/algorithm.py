"""Step-by-step DB-Scan clustering."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import numbers
from typing import Iterable, Optional

import numpy as np

from ..core.algorithm import ClusteringAlgorithm
from ..core.clusters import Cluster
from ..core.errors import ConfigurationError
from ..core.items import Item
from ..core.iterations import (
    STEP_COMPLETE,
    STEP_EXPAND,
    STEP_NOISE,
    STEP_SEED,
    Iteration,
)
from .neighbors import NeighborIndex, NeighborIndexName, build_neighbor_index


logger = logging.getLogger(__name__)

RandomSource = np.random.Generator | int | None


@dataclass(slots=True)
class DBScanParameters:
    """Configuration for a DB-Scan run.

    ``min_points`` counts the core point itself, so ``min_points=1`` turns
    every item into a cluster seed and no noise is ever produced.
    """

    distance_threshold: float
    min_points: int
    neighbor_index: NeighborIndexName = "brute"
    frontier_batch_size: int | None = None
    reclaim_noise: bool = True
    fold_completion: bool = True
    cluster_id_prefix: str = "cluster"

    def validate(self) -> None:
        threshold = self.distance_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real):
            raise ConfigurationError("distance_threshold must be a real number.")
        if not math.isfinite(threshold) or threshold < 0:
            raise ConfigurationError("distance_threshold must be finite and non-negative.")

        if isinstance(self.min_points, bool) or not isinstance(self.min_points, numbers.Integral):
            raise ConfigurationError("min_points must be an integer.")
        if self.min_points < 1:
            raise ConfigurationError("min_points must be at least 1.")

        batch_size = self.frontier_batch_size
        if batch_size is not None:
            if isinstance(batch_size, bool) or not isinstance(batch_size, numbers.Integral):
                raise ConfigurationError("frontier_batch_size must be an integer when provided.")
            if batch_size < 1:
                raise ConfigurationError("frontier_batch_size must be at least 1 when provided.")

        if not self.cluster_id_prefix:
            raise ConfigurationError("cluster_id_prefix must be a non-empty string.")

    def to_dict(self) -> dict[str, object]:
        return {
            "distance_threshold": float(self.distance_threshold),
            "min_points": int(self.min_points),
            "neighbor_index": self.neighbor_index,
            "frontier_batch_size": self.frontier_batch_size,
            "reclaim_noise": self.reclaim_noise,
            "fold_completion": self.fold_completion,
            "cluster_id_prefix": self.cluster_id_prefix,
        }


class DBScanAlgorithm(ClusteringAlgorithm):
    """Density-based clustering that grows one cluster frontier per step.

    Each call to :meth:`advance` either expands the active cluster by the
    neighbours of its frontier, or, when no cluster is active, draws a random
    pending item and turns it into a new cluster seed or into noise.
    """

    name = "DB-Scan"

    def __init__(
        self,
        items: Iterable[Item],
        distance_threshold: float,
        min_points: int,
        *,
        neighbor_index: NeighborIndexName = "brute",
        frontier_batch_size: int | None = None,
        reclaim_noise: bool = True,
        fold_completion: bool = True,
        cluster_id_prefix: str = "cluster",
        rng: RandomSource = None,
    ) -> None:
        params = DBScanParameters(
            distance_threshold=distance_threshold,
            min_points=min_points,
            neighbor_index=neighbor_index,
            frontier_batch_size=frontier_batch_size,
            reclaim_noise=reclaim_noise,
            fold_completion=fold_completion,
            cluster_id_prefix=cluster_id_prefix,
        )
        params.validate()

        super().__init__(items)
        self.params = params
        self._index: NeighborIndex = build_neighbor_index(
            params.neighbor_index, self.items, float(params.distance_threshold)
        )
        self._rng = np.random.default_rng(rng)
        self._active_cluster_id: str | None = None
        self._clusters_created = 0

    @classmethod
    def from_parameters(
        cls,
        items: Iterable[Item],
        params: DBScanParameters,
        *,
        rng: RandomSource = None,
    ) -> DBScanAlgorithm:
        return cls(
            items,
            params.distance_threshold,
            params.min_points,
            neighbor_index=params.neighbor_index,
            frontier_batch_size=params.frontier_batch_size,
            reclaim_noise=params.reclaim_noise,
            fold_completion=params.fold_completion,
            cluster_id_prefix=params.cluster_id_prefix,
            rng=rng,
        )

    @property
    def distance_threshold(self) -> float:
        return float(self.params.distance_threshold)

    @property
    def min_points(self) -> int:
        return int(self.params.min_points)

    @property
    def active_cluster_id(self) -> str | None:
        return self._active_cluster_id

    def reset(self, rng: RandomSource = None) -> None:
        """Start over; pass ``rng`` to replace the random source."""

        super().reset()
        if rng is not None:
            self._rng = np.random.default_rng(rng)

    def neighbors(self, item: Item) -> frozenset[Item]:
        """Items other than ``item`` within the distance threshold, from the full item set."""

        return self._index.neighbors(item)

    def is_core(self, neighbours: frozenset[Item]) -> bool:
        # +1 because the core point counts towards min_points
        return len(neighbours) + 1 >= self.params.min_points

    def _reset_state(self) -> None:
        self._active_cluster_id = None
        self._clusters_created = 0

    def _compute_next_iteration(self, previous: Optional[Iteration]) -> Optional[Iteration]:
        if not self.items:
            return None

        if previous is None:
            order = 1
            clusters: list[Cluster] = []
            pending = set(self.items)
            noise: set[Item] = set()
        else:
            if not previous.pending and (
                self._active_cluster_id is None or not self.params.reclaim_noise
            ):
                self._active_cluster_id = None
                return None
            order = previous.order + 1
            clusters = list(previous.clusters)
            pending = set(previous.pending)
            noise = set(previous.noise)

        completed_cluster_id: str | None = None
        if self._active_cluster_id is not None:
            if self._expand_active_cluster(clusters, pending, noise):
                active_cluster_id = self._active_cluster_id
                if self._is_exhausted(clusters, pending, noise):
                    completed_cluster_id, active_cluster_id = active_cluster_id, None
                    self._active_cluster_id = None
                return self._new_iteration(
                    order,
                    clusters=clusters,
                    pending=pending,
                    noise=noise,
                    kind=STEP_EXPAND,
                    active_cluster_id=active_cluster_id,
                    completed_cluster_id=completed_cluster_id,
                )

            completed_cluster_id = self._active_cluster_id
            self._active_cluster_id = None
            logger.debug("Cluster %s stopped growing", completed_cluster_id)

            if not self.params.fold_completion:
                return self._new_iteration(
                    order,
                    clusters=clusters,
                    pending=pending,
                    noise=noise,
                    kind=STEP_COMPLETE,
                    completed_cluster_id=completed_cluster_id,
                )
            if not pending:
                return None

        return self._search_new_cluster(
            order,
            clusters,
            pending,
            noise,
            completed_cluster_id=completed_cluster_id,
        )

    def _expand_active_cluster(
        self,
        clusters: list[Cluster],
        pending: set[Item],
        noise: set[Item],
    ) -> bool:
        """Grow the active cluster in place; return ``False`` once it is finished."""

        position = next(
            index for index, cluster in enumerate(clusters) if cluster.id == self._active_cluster_id
        )
        cluster = clusters[position]

        frontier = self._ordered(cluster.frontier)
        batch_size = self.params.frontier_batch_size
        if batch_size is not None:
            batch, carried = frontier[:batch_size], frontier[batch_size:]
        else:
            batch, carried = frontier, []

        candidates: set[Item] = set()
        for item in batch:
            neighbours = self.neighbors(item)
            if self.is_core(neighbours):
                candidates.update(neighbours)

        added = self._claim(candidates, pending, noise)
        if not added and not carried:
            return False

        clusters[position] = cluster.grow(added, carried=carried)
        return True

    def _is_exhausted(self, clusters: list[Cluster], pending: set[Item], noise: set[Item]) -> bool:
        """Whether a folded run has nothing left once the active cluster stops here.

        True only when nothing is pending and another expansion of the active
        cluster could neither carry frontier items over nor claim any item.
        """

        if not self.params.fold_completion or pending:
            return False

        cluster = next(cluster for cluster in clusters if cluster.id == self._active_cluster_id)
        batch_size = self.params.frontier_batch_size
        if batch_size is not None and len(cluster.frontier) > batch_size:
            return False
        if not self.params.reclaim_noise or not noise:
            return True

        for item in cluster.frontier:
            neighbours = self.neighbors(item)
            if self.is_core(neighbours) and not neighbours.isdisjoint(noise):
                return False
        return True

    def _search_new_cluster(
        self,
        order: int,
        clusters: list[Cluster],
        pending: set[Item],
        noise: set[Item],
        *,
        completed_cluster_id: str | None,
    ) -> Iteration:
        candidates = self._ordered(pending)
        picked = candidates[int(self._rng.integers(len(candidates)))]
        pending.discard(picked)

        neighbours = self.neighbors(picked)
        if not self.is_core(neighbours):
            noise.add(picked)
            return self._new_iteration(
                order,
                clusters=clusters,
                pending=pending,
                noise=noise,
                kind=STEP_NOISE,
                picked=picked,
                completed_cluster_id=completed_cluster_id,
            )

        claimed = self._claim(neighbours, pending, noise)
        self._clusters_created += 1
        ordinal = self._clusters_created
        cluster = Cluster.seeded(
            f"{self.params.cluster_id_prefix}-{ordinal:03d}",
            picked,
            claimed,
            name=f"Cluster {ordinal}",
        )
        clusters.append(cluster)
        self._active_cluster_id = cluster.id
        logger.debug("Seeded %s from item %s with %d neighbours", cluster.id, picked.id, len(claimed))

        active_cluster_id: str | None = cluster.id
        if self._is_exhausted(clusters, pending, noise):
            # a single completed id per step; a folded completion keeps the slot
            if completed_cluster_id is None:
                completed_cluster_id = cluster.id
            active_cluster_id = self._active_cluster_id = None

        return self._new_iteration(
            order,
            clusters=clusters,
            pending=pending,
            noise=noise,
            kind=STEP_SEED,
            picked=picked,
            active_cluster_id=active_cluster_id,
            completed_cluster_id=completed_cluster_id,
        )

    def _claim(self, candidates: Iterable[Item], pending: set[Item], noise: set[Item]) -> set[Item]:
        """Move the claimable ``candidates`` out of ``pending`` (and ``noise``) and return them."""

        candidates = set(candidates)
        claimed = candidates & pending
        pending.difference_update(claimed)

        if self.params.reclaim_noise:
            reclaimed = candidates & noise
            noise.difference_update(reclaimed)
            claimed |= reclaimed

        return claimed


__all__ = ["DBScanAlgorithm", "DBScanParameters", "RandomSource"]
