"""Structured tracing utilities for clustering runs."""

from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
import json
from typing import Any, Mapping

from ..core.items import sorted_ids
from ..core.iterations import Iteration


def _normalise_for_hash(value: Any) -> Any:
    """Return a JSON-serialisable representation of ``value``."""

    if isinstance(value, Mapping):
        return {str(key): _normalise_for_hash(sub_value) for key, sub_value in sorted(value.items())}

    if isinstance(value, (list, tuple)):
        return [_normalise_for_hash(item) for item in value]

    if isinstance(value, (set, frozenset)):
        return sorted(_normalise_for_hash(item) for item in value)

    if hasattr(value, "tolist"):
        return value.tolist()

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value

    return repr(value)


def hash_payload(payload: Any) -> str:
    """Return a stable SHA-256 hash for ``payload``.

    The helper normalises the payload into a JSON serialisable structure so
    that sets and tuples hash the same regardless of iteration order.
    """

    normalised = _normalise_for_hash(payload)
    encoded = json.dumps(normalised, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def partition_fingerprint(iteration: Iteration) -> str:
    """Hash the partition held by ``iteration``, ignoring discovery order and cluster ids."""

    clusters = sorted(sorted_ids(cluster.members) for cluster in iteration.clusters)
    return hash_payload(
        {
            "clusters": clusters,
            "noise": sorted_ids(iteration.noise),
            "pending": sorted_ids(iteration.pending),
        }
    )


TRACE_SCHEMA_VERSION = "v1"


@dataclass(slots=True)
class TraceRecord:
    """Structured trace describing one clustering step."""

    order: int
    kind: str
    metadata: dict[str, Any] = field(default_factory=dict)
    counts: dict[str, Any] = field(default_factory=dict)
    step: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.order = int(self.order)
        self.kind = str(self.kind)

        metadata = dict(self.metadata)
        metadata.setdefault("schema_version", TRACE_SCHEMA_VERSION)
        self.metadata = metadata

    def to_dict(self) -> dict[str, Any]:
        """Return a flattened dictionary suitable for JSON/CSV output."""

        flattened: dict[str, Any] = {
            "order": self.order,
            "kind": self.kind,
        }

        for section_name, section in (
            ("metadata", self.metadata),
            ("counts", self.counts),
            ("step", self.step),
        ):
            if not section:
                continue
            for key, value in section.items():
                flattened[f"{section_name}.{key}"] = value

        return flattened


def trace_iteration(iteration: Iteration, *, algorithm: str | None = None) -> TraceRecord:
    """Build the trace record for a single snapshot."""

    metadata: dict[str, Any] = {}
    if algorithm is not None:
        metadata["algorithm"] = algorithm
    if iteration.run_id is not None:
        metadata["run_id"] = iteration.run_id

    step: dict[str, Any] = {
        "picked_id": iteration.picked.id if iteration.picked is not None else None,
        "active_cluster_id": iteration.active_cluster_id,
        "completed_cluster_id": iteration.completed_cluster_id,
    }
    if iteration.active_cluster_id is not None:
        active = iteration.get_cluster(iteration.active_cluster_id)
        step["frontier_size"] = len(active.frontier) if active is not None else 0

    return TraceRecord(
        order=iteration.order,
        kind=iteration.kind,
        metadata=metadata,
        counts={
            "clusters": len(iteration.clusters),
            "clustered": sum(cluster.size for cluster in iteration.clusters),
            "pending": len(iteration.pending),
            "noise": len(iteration.noise),
        },
        step=step,
    )


__all__ = [
    "TRACE_SCHEMA_VERSION",
    "TraceRecord",
    "hash_payload",
    "partition_fingerprint",
    "trace_iteration",
]
