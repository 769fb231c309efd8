"""Data loading utilities for point datasets."""

from .loaders import MissingColumnsError, items_from_frame, load_items, load_points
from .schema import (
    POINT_ID_COLUMN,
    POINTS_SCHEMA,
    X_COLUMN,
    Y_COLUMN,
    DatasetSchema,
)

__all__ = [
    "MissingColumnsError",
    "items_from_frame",
    "load_items",
    "load_points",
    "POINT_ID_COLUMN",
    "POINTS_SCHEMA",
    "X_COLUMN",
    "Y_COLUMN",
    "DatasetSchema",
]
