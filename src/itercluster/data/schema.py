"""Dataset schema definitions for point ingestion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

import pandas as pd
from pandas._typing import DtypeArg

StringDtype = pd.StringDtype


@dataclass(frozen=True)
class DatasetSchema:
    """Schema describing required columns and dtypes for a dataset."""

    name: str
    required_columns: Sequence[str]
    optional_columns: Sequence[str] = ()
    dtypes: Mapping[str, DtypeArg] = field(default_factory=dict)

    def missing_required(self, columns: Iterable[str]) -> list[str]:
        provided = {column for column in columns}
        return sorted(column for column in self.required_columns if column not in provided)

    @property
    def expected_columns(self) -> tuple[str, ...]:
        return tuple(self.required_columns) + tuple(self.optional_columns)

    def dtype_for_read(self) -> dict[str, DtypeArg]:
        """Return dtype mapping limited to expected columns."""
        return {column: dtype for column, dtype in self.dtypes.items() if column in self.expected_columns}

    def coerce_dtypes(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Coerce columns that are present to their configured dtypes."""
        dtype_map = {column: dtype for column, dtype in self.dtype_for_read().items() if column in frame.columns}
        if dtype_map:
            frame = frame.astype(dtype_map, copy=False)
        return frame

    def with_columns(self, *, id_column: str, x_column: str, y_column: str) -> DatasetSchema:
        """Return a copy that expects the given id/coordinate column names."""

        renames = {
            self.required_columns[0]: id_column,
            self.required_columns[1]: x_column,
            self.required_columns[2]: y_column,
        }
        return DatasetSchema(
            name=self.name,
            required_columns=tuple(renames.get(column, column) for column in self.required_columns),
            optional_columns=self.optional_columns,
            dtypes={renames.get(column, column): dtype for column, dtype in self.dtypes.items()},
        )


STRING = StringDtype()
FLOAT64 = "float64"

POINT_ID_COLUMN = "PointId"
X_COLUMN = "X"
Y_COLUMN = "Y"

POINTS_SCHEMA = DatasetSchema(
    name="points",
    required_columns=(POINT_ID_COLUMN, X_COLUMN, Y_COLUMN),
    optional_columns=("Label",),
    dtypes={
        POINT_ID_COLUMN: STRING,
        X_COLUMN: FLOAT64,
        Y_COLUMN: FLOAT64,
        "Label": STRING,
    },
)

__all__ = [
    "DatasetSchema",
    "POINTS_SCHEMA",
    "POINT_ID_COLUMN",
    "X_COLUMN",
    "Y_COLUMN",
]
