"""Exception types shared by the iterative clustering engines."""

from __future__ import annotations


class ClusteringError(RuntimeError):
    """Base class for errors raised by a clustering engine."""


class ConfigurationError(ClusteringError):
    """Raised when an engine is constructed with invalid parameters."""


class ProtocolMisuseError(ClusteringError):
    """Raised when ``advance`` is called in a way the step protocol forbids."""


class InvalidItemError(ValueError):
    """Raised when an item cannot take part in a clustering run."""


__all__ = [
    "ClusteringError",
    "ConfigurationError",
    "InvalidItemError",
    "ProtocolMisuseError",
]
