"""Iterative, inspectable density-based clustering of 2D points."""

from .core import (
    Cluster,
    ClusteringAlgorithm,
    ClusteringError,
    ConfigurationError,
    InvalidItemError,
    Item,
    Iteration,
    ProtocolMisuseError,
)
from .dbscan import DBScanAlgorithm, DBScanParameters

__all__ = [
    "Cluster",
    "ClusteringAlgorithm",
    "ClusteringError",
    "ConfigurationError",
    "DBScanAlgorithm",
    "DBScanParameters",
    "InvalidItemError",
    "Item",
    "Iteration",
    "ProtocolMisuseError",
]
