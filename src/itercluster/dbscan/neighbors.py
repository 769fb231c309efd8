"""Neighbour search strategies for the DB-Scan engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
import math
from typing import Dict, List, Literal, Sequence, Tuple

import numpy as np

from ..core.errors import ConfigurationError
from ..core.items import Item


NeighborIndexName = Literal["brute", "grid"]


class NeighborIndex(ABC):
    """Find the items within ``distance_threshold`` of a given item.

    Implementations must agree exactly: distances are compared squared
    (``dx*dx + dy*dy <= threshold*threshold``) so no square root can tip a
    boundary case one way or the other.
    """

    def __init__(self, items: Sequence[Item], distance_threshold: float) -> None:
        self.items = tuple(items)
        self.distance_threshold = float(distance_threshold)
        self._threshold_sq = self.distance_threshold * self.distance_threshold

    @abstractmethod
    def neighbors(self, item: Item) -> frozenset[Item]:
        """Return every other indexed item within the distance threshold of ``item``."""


class BruteForceIndex(NeighborIndex):
    """Scan all items with one vectorised distance computation per query."""

    def __init__(self, items: Sequence[Item], distance_threshold: float) -> None:
        super().__init__(items, distance_threshold)
        self._xs = np.array([item.x for item in self.items], dtype=float)
        self._ys = np.array([item.y for item in self.items], dtype=float)

    def neighbors(self, item: Item) -> frozenset[Item]:
        if not self.items:
            return frozenset()

        dx = self._xs - item.x
        dy = self._ys - item.y
        within = (dx * dx + dy * dy) <= self._threshold_sq
        return frozenset(
            self.items[index]
            for index in np.flatnonzero(within)
            if self.items[index] != item
        )


class GridIndex(NeighborIndex):
    """Bucket items into square cells so each query only inspects nearby cells."""

    def __init__(self, items: Sequence[Item], distance_threshold: float) -> None:
        super().__init__(items, distance_threshold)
        # cells slightly wider than the threshold keep every neighbour within one
        # cell of the query even after rounding; at threshold 0 only coincident
        # points qualify and they always share a cell
        if self.distance_threshold > 0:
            self.cell_size = self.distance_threshold * (1.0 + 1e-9)
            self.reach = 1
        else:
            self.cell_size = 1.0
            self.reach = 0
        self._cells: Dict[Tuple[int, int], List[Item]] = {}
        for candidate in self.items:
            self._cells.setdefault(self._cell_of(candidate), []).append(candidate)

    def _cell_of(self, item: Item) -> Tuple[int, int]:
        return (math.floor(item.x / self.cell_size), math.floor(item.y / self.cell_size))

    def neighbors(self, item: Item) -> frozenset[Item]:
        column, row = self._cell_of(item)
        found: list[Item] = []
        for dc in range(-self.reach, self.reach + 1):
            for dr in range(-self.reach, self.reach + 1):
                for candidate in self._cells.get((column + dc, row + dr), ()):
                    if candidate == item:
                        continue
                    dx = candidate.x - item.x
                    dy = candidate.y - item.y
                    if dx * dx + dy * dy <= self._threshold_sq:
                        found.append(candidate)
        return frozenset(found)


_INDEXES: Dict[str, type[NeighborIndex]] = {
    "brute": BruteForceIndex,
    "grid": GridIndex,
}


def build_neighbor_index(
    name: NeighborIndexName,
    items: Sequence[Item],
    distance_threshold: float,
) -> NeighborIndex:
    """Instantiate the neighbour index registered under ``name``."""

    index_cls = _INDEXES.get(name)
    if index_cls is None:
        raise ConfigurationError(
            f"Unsupported neighbor index '{name}'. Expected one of: {', '.join(sorted(_INDEXES))}."
        )
    return index_cls(items, distance_threshold)


__all__ = [
    "BruteForceIndex",
    "GridIndex",
    "NeighborIndex",
    "NeighborIndexName",
    "build_neighbor_index",
]
