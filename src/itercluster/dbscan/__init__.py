"""DB-Scan engine that exposes every growth step as a snapshot."""

from .algorithm import DBScanAlgorithm, DBScanParameters, RandomSource
from .neighbors import (
    BruteForceIndex,
    GridIndex,
    NeighborIndex,
    NeighborIndexName,
    build_neighbor_index,
)

__all__ = [
    "BruteForceIndex",
    "DBScanAlgorithm",
    "DBScanParameters",
    "GridIndex",
    "NeighborIndex",
    "NeighborIndexName",
    "RandomSource",
    "build_neighbor_index",
]
