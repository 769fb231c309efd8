"""Tracing utilities for inspecting clustering runs step by step."""

from .trace import (
    TRACE_SCHEMA_VERSION,
    TraceRecord,
    hash_payload,
    partition_fingerprint,
    trace_iteration,
)

__all__ = [
    "TRACE_SCHEMA_VERSION",
    "TraceRecord",
    "hash_payload",
    "partition_fingerprint",
    "trace_iteration",
]
