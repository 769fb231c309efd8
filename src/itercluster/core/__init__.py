"""Items, clusters, snapshots and the step protocol shared by all engines."""

from .algorithm import ClusteringAlgorithm
from .clusters import Cluster
from .errors import (
    ClusteringError,
    ConfigurationError,
    InvalidItemError,
    ProtocolMisuseError,
)
from .items import Item, ensure_unique_items
from .iterations import (
    STEP_COMPLETE,
    STEP_EXPAND,
    STEP_NOISE,
    STEP_SEED,
    Iteration,
    StepKind,
)

__all__ = [
    "Cluster",
    "ClusteringAlgorithm",
    "ClusteringError",
    "ConfigurationError",
    "InvalidItemError",
    "Item",
    "Iteration",
    "ProtocolMisuseError",
    "STEP_COMPLETE",
    "STEP_EXPAND",
    "STEP_NOISE",
    "STEP_SEED",
    "StepKind",
    "ensure_unique_items",
]
