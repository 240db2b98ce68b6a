"""backpropnet public API."""

from .core import activations, losses, sampling, types  # noqa: F401
from .core.errors import DimensionMismatch, EmptyBatch, InvalidTopology, NetworkError
from .core.network import Network
from .core.types import ActivationTrace, EpochReport, Example, Gradients
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer, stochastic_gradient_descent

__all__ = [
    "Network",
    "Trainer",
    "stochastic_gradient_descent",
    "Example",
    "ActivationTrace",
    "Gradients",
    "EpochReport",
    "NetworkError",
    "InvalidTopology",
    "DimensionMismatch",
    "EmptyBatch",
    "activations",
    "losses",
    "sampling",
    "types",
    "load_preset",
    "presets",
    "run_pipeline",
]
