"""Validation of CLI outputs against the JSON schemas bundled with the package."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import jsonschema
import numpy as np
import pandas as pd


SCHEMA_VERSION = "v1"
SCHEMA_NAMES = ("assignment", "cluster", "trace")
_SCHEMAS_ROOT = Path(__file__).resolve().parent / "schemas"


class SchemaValidationError(RuntimeError):
    """Raised when an output record does not match its schema."""

    def __init__(self, schema: str, index: int, message: str) -> None:
        super().__init__(f"{schema} record {index} failed validation: {message}")
        self.schema = schema
        self.index = index
        self.message = message


def schema_path(schema: str, *, schema_version: str = SCHEMA_VERSION) -> Path:
    """Return the bundled schema file for ``schema`` (one of :data:`SCHEMA_NAMES`)."""

    if schema not in SCHEMA_NAMES:
        raise ValueError(
            f"Unknown schema type '{schema}'. Expected one of: {', '.join(SCHEMA_NAMES)}"
        )
    return _SCHEMAS_ROOT / schema_version / f"{schema}.schema.json"


class SchemaValidator:
    """Check output records against the bundled schemas, loading each schema once."""

    def __init__(self, *, schema_version: str = SCHEMA_VERSION) -> None:
        self.schema_version = schema_version
        self._validators: dict[str, Any] = {}

    def validator_for(self, schema: str) -> Any:
        validator = self._validators.get(schema)
        if validator is None:
            path = schema_path(schema, schema_version=self.schema_version)
            with path.open(encoding="utf-8") as handle:
                document = json.load(handle)
            validator_cls = jsonschema.validators.validator_for(document)
            validator_cls.check_schema(document)
            validator = self._validators[schema] = validator_cls(document)
        return validator

    def validate_records(self, schema: str, records: Iterable[Mapping[str, Any]]) -> int:
        """Validate ``records`` in order and return how many were checked.

        The first invalid record raises :class:`SchemaValidationError` naming
        its position and the most relevant schema error.
        """

        validator = self.validator_for(schema)
        count = 0
        for index, record in enumerate(records):
            error = jsonschema.exceptions.best_match(validator.iter_errors(record))
            if error is not None:
                location = "/".join(str(part) for part in error.absolute_path)
                message = f"{error.message} (at {location})" if location else error.message
                raise SchemaValidationError(schema, index, message)
            count += 1
        return count

    def validate_frame(
        self,
        schema: str,
        frame: pd.DataFrame | None,
        *,
        string_fields: Sequence[str] = (),
    ) -> int:
        if frame is None or frame.empty:
            return 0
        return self.validate_records(schema, frame_records(frame, string_fields=string_fields))


def frame_records(frame: pd.DataFrame, *, string_fields: Sequence[str] = ()) -> list[dict[str, Any]]:
    """Turn ``frame`` rows into JSON-compatible dicts with missing values as ``None``."""

    as_text = frozenset(string_fields)
    records: list[dict[str, Any]] = []
    for row in frame.astype(object).to_dict(orient="records"):
        record: dict[str, Any] = {}
        for column, value in row.items():
            value = _plain(value)
            if column in as_text and value is not None:
                value = str(value)
            record[str(column)] = value
        records.append(record)
    return records


def _plain(value: Any) -> Any:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    return value


__all__ = [
    "SCHEMA_NAMES",
    "SCHEMA_VERSION",
    "SchemaValidationError",
    "SchemaValidator",
    "frame_records",
    "schema_path",
]
