"""Small point datasets for integration and regression testing.

Each scenario is a sub-directory holding a ``points.csv`` file with
``PointId``, ``X``, ``Y`` and an informational ``Label`` column.

``line_and_outlier``
    Three collinear points one unit apart plus a distant outlier; with
    ``eps=1.5`` and ``min_points=2`` it yields one cluster and one noise item.
``two_blobs``
    Two well separated blobs of six points plus two isolated points; with
    ``eps=1.0`` and ``min_points=3`` it yields two clusters and two noise items.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

_FIXTURES_ROOT = Path(__file__).resolve().parent


def available_fixtures() -> list[str]:
    """Return the names of the fixture scenarios that ship with the package."""

    return sorted(
        entry.name
        for entry in _FIXTURES_ROOT.iterdir()
        if entry.is_dir() and not entry.name.startswith("__")
    )


def fixture_path(name: str, dataset: str = "points") -> Path:
    """Return the absolute path to a fixture dataset.

    Parameters
    ----------
    name:
        Name of the fixture scenario (e.g., ``"two_blobs"``).
    dataset:
        Dataset to load from the fixture directory. The ``.csv`` suffix is
        optional.
    """

    normalised = dataset if dataset.endswith(".csv") else f"{dataset}.csv"
    path = _FIXTURES_ROOT / name / normalised
    if not path.exists():
        available = ", ".join(available_fixtures())
        raise FileNotFoundError(
            f"Dataset '{dataset}' not found for fixture '{name}'. Available fixtures: {available}"
        )
    return path


def iter_fixture_datasets(name: str) -> Iterable[Path]:
    """Yield all CSV datasets available for ``name``."""

    directory = _FIXTURES_ROOT / name
    if not directory.is_dir():
        available = ", ".join(available_fixtures())
        raise FileNotFoundError(
            f"Fixture '{name}' not found. Available fixtures: {available}"
        )
    yield from sorted(directory.glob("*.csv"))


__all__ = ["available_fixtures", "fixture_path", "iter_fixture_datasets"]
