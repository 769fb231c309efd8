"""Utilities for loading point datasets and turning them into items."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..core.errors import InvalidItemError
from ..core.items import Item
from .schema import POINT_ID_COLUMN, POINTS_SCHEMA, X_COLUMN, Y_COLUMN, DatasetSchema

__all__ = [
    "MissingColumnsError",
    "items_from_frame",
    "load_items",
    "load_points",
]


class MissingColumnsError(ValueError):
    """Raised when a dataset is missing required columns."""

    def __init__(self, schema: DatasetSchema, missing: list[str]):
        message = (
            f"{schema.name.title()} data is missing required columns: {', '.join(missing)}. "
            f"Expected columns include: {', '.join(schema.required_columns)}."
        )
        super().__init__(message)
        self.schema = schema
        self.missing = missing


def load_points(
    path: str | Path,
    *,
    id_column: str = POINT_ID_COLUMN,
    x_column: str = X_COLUMN,
    y_column: str = Y_COLUMN,
) -> pd.DataFrame:
    """Load a points dataset from CSV or JSON and validate required columns."""

    schema = POINTS_SCHEMA.with_columns(id_column=id_column, x_column=x_column, y_column=y_column)
    return _load_and_validate(path, schema)


def load_items(
    path: str | Path,
    *,
    id_column: str = POINT_ID_COLUMN,
    x_column: str = X_COLUMN,
    y_column: str = Y_COLUMN,
) -> list[Item]:
    """Load a points dataset and convert it straight into items."""

    frame = load_points(path, id_column=id_column, x_column=x_column, y_column=y_column)
    return items_from_frame(frame, id_column=id_column, x_column=x_column, y_column=y_column)


def items_from_frame(
    frame: pd.DataFrame,
    *,
    id_column: str = POINT_ID_COLUMN,
    x_column: str = X_COLUMN,
    y_column: str = Y_COLUMN,
) -> list[Item]:
    """Convert the rows of ``frame`` into items, rejecting missing values."""

    schema = POINTS_SCHEMA.with_columns(id_column=id_column, x_column=x_column, y_column=y_column)
    missing = schema.missing_required(frame.columns)
    if missing:
        raise MissingColumnsError(schema, missing)

    items: list[Item] = []
    for position, (identifier, x, y) in enumerate(
        zip(frame[id_column], frame[x_column], frame[y_column])
    ):
        if pd.isna(identifier) or pd.isna(x) or pd.isna(y):
            raise InvalidItemError(f"Row {position} has a missing id or coordinate")
        items.append(Item(str(identifier), float(x), float(y)))
    return items


def _load_and_validate(path_like: str | Path, schema: DatasetSchema) -> pd.DataFrame:
    path = Path(path_like)
    frame = _read_structured_file(path, schema)
    missing = schema.missing_required(frame.columns)
    if missing:
        raise MissingColumnsError(schema, missing)
    return schema.coerce_dtypes(frame)


def _read_structured_file(path: Path, schema: DatasetSchema) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype=schema.dtype_for_read())
    if suffix in {".json", ".jsonl", ".ndjson"}:
        return _read_json(path)
    raise ValueError(f"Unsupported file type '{suffix}' for {schema.name} data")


def _read_json(path: Path) -> pd.DataFrame:
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return pd.DataFrame()
    if raw[0] == "{":
        return pd.read_json(path, lines=True)
    return pd.read_json(path)
