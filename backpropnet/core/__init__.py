"""Core numerical primitives for backpropnet."""

from . import activations, errors, losses, sampling, types
from .errors import DimensionMismatch, EmptyBatch, InvalidTopology, NetworkError
from .network import Network

__all__ = [
    "activations",
    "errors",
    "losses",
    "sampling",
    "types",
    "Network",
    "NetworkError",
    "InvalidTopology",
    "DimensionMismatch",
    "EmptyBatch",
]
