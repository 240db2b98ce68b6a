"""Errors raised by the numerical core."""

from __future__ import annotations


class NetworkError(ValueError):
    """Base class for malformed calls into the network."""


class InvalidTopology(NetworkError):
    """Raised when a layer-size list cannot describe a network."""


class DimensionMismatch(NetworkError):
    """Raised when an input or target vector disagrees with the topology."""


class EmptyBatch(NetworkError):
    """Raised when a mini-batch update is requested with no examples."""


__all__ = ["NetworkError", "InvalidTopology", "DimensionMismatch", "EmptyBatch"]
