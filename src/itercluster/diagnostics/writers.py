"""Versioned diagnostics artefacts written next to clustering outputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Union

import numpy as np
import pandas as pd


PathLike = Union[str, Path]

DIAGNOSTICS_VERSION = "v0.1"
"""Version tag carried by every diagnostics filename."""

DIAGNOSTICS_BASENAME = f"itercluster-diagnostics-{DIAGNOSTICS_VERSION}"


def diagnostics_path(target: PathLike, suffix: str) -> Path:
    """Return the file an artefact with ``suffix`` is written to.

    ``target`` is either a directory, which receives the versioned filename,
    or that versioned filename itself. Missing parent directories are
    created.
    """

    path = Path(target)
    filename = DIAGNOSTICS_BASENAME + suffix

    if not path.suffix:
        if path.is_file():
            raise ValueError(
                f"Diagnostics target '{path}' is a file; pass a directory or '{filename}'."
            )
        path = path / filename
    elif path.name != filename:
        raise ValueError(f"Diagnostics outputs must be named '{filename}', not '{path.name}'.")

    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _to_builtin(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serialisable")


def write_json(payload: Mapping[str, Any], target: PathLike) -> Path:
    """Write ``payload`` as indented JSON, converting numpy scalars on the way."""

    path = diagnostics_path(target, ".json")
    text = json.dumps(payload, indent=2, sort_keys=True, default=_to_builtin)
    path.write_text(text + "\n", encoding="utf-8")
    return path


def write_parquet(frame: pd.DataFrame, target: PathLike) -> Path:
    path = diagnostics_path(target, ".parquet")
    frame.to_parquet(path, index=False)
    return path


__all__ = [
    "DIAGNOSTICS_BASENAME",
    "DIAGNOSTICS_VERSION",
    "PathLike",
    "diagnostics_path",
    "write_json",
    "write_parquet",
]
