"""Core typing contracts for backpropnet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List

import numpy as np

Array = np.ndarray


@dataclass(frozen=True, eq=False)
class Example:
    """A single labelled training example.

    ``Example`` unpacks like the ``(inputs, target)`` pair loaders produce, so
    plain tuples and ``Example`` instances can be mixed freely.
    """

    inputs: Array
    target: Array

    def __iter__(self) -> Iterator[Array]:
        yield self.inputs
        yield self.target

    def __len__(self) -> int:
        return 2


@dataclass
class ActivationTrace:
    """Intermediate values captured during one traced forward pass."""

    activations: List[Array]
    weighted_sums: List[Array]

    @property
    def output(self) -> Array:
        return self.activations[-1]


@dataclass
class Gradients:
    """Per-layer weight and bias arrays shaped like a network's parameters."""

    weights: List[Array]
    biases: List[Array]

    @classmethod
    def zeros_like(cls, weights: List[Array], biases: List[Array]) -> "Gradients":
        return cls(
            weights=[np.zeros_like(w) for w in weights],
            biases=[np.zeros_like(b) for b in biases],
        )

    def accumulate(self, other: "Gradients") -> None:
        """Add ``other`` into this accumulator in place."""

        for total, grad in zip(self.weights, other.weights):
            total += grad
        for total, grad in zip(self.biases, other.biases):
            total += grad


@dataclass(frozen=True)
class EpochReport:
    """Progress record emitted once per training epoch."""

    epoch: int
    correct: int | None = None
    total: int | None = None
    loss: float | None = None

    @property
    def evaluated(self) -> bool:
        return self.total is not None

    def metrics(self) -> dict[str, float]:
        if not self.evaluated:
            return {"completed": 1.0}
        payload = {
            "correct": float(self.correct or 0),
            "total": float(self.total or 0),
            "accuracy": float(self.correct or 0) / self.total if self.total else 0.0,
        }
        if self.loss is not None:
            payload["loss"] = float(self.loss)
        return payload


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`backpropnet.training.pipelines.run_pipeline`."""

    epochs: int
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    history: List[EpochReport] = field(default_factory=list)
